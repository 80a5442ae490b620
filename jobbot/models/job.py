"""
Database models for job listings
"""

from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..core.utils import new_id, utcnow


class JobBase(SQLModel):
    """Base job model with shared fields"""
    title: str = Field(index=True)
    company: str = Field(index=True)
    location: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    requirements: Optional[str] = Field(default=None)
    salary: Optional[str] = Field(default=None)

    # Where the listing came from
    job_board: str = Field(index=True)  # Indeed, LinkedIn, RemoteOK, Stack Overflow, Manual
    external_id: str = Field(index=True)  # Board-specific id, used for deduplication
    url: str
    is_active: bool = Field(default=True)


class Job(JobBase, table=True):
    """Job table model"""
    __tablename__ = "jobs"

    id: str = Field(default_factory=new_id, primary_key=True)
    discovered_at: datetime = Field(default_factory=utcnow, index=True)


class JobCreate(JobBase):
    """Model for creating new jobs"""
    pass


class JobRead(JobBase):
    """Model for reading jobs"""
    id: str
    discovered_at: datetime


class JobUpdate(SQLModel):
    """Model for updating jobs"""
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    salary: Optional[str] = None
    url: Optional[str] = None
    is_active: Optional[bool] = None


class ScrapedJob(SQLModel):
    """A listing as parsed from a job board, before it is stored"""
    title: str
    company: str
    location: Optional[str] = None
    description: str = ""
    requirements: Optional[str] = None
    salary: Optional[str] = None
    url: str
    external_id: str
    job_board: str
