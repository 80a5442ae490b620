"""
Database models for resumes
"""

from datetime import datetime
from typing import Any, List, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from ..core.utils import new_id, utcnow


class ResumeBase(SQLModel):
    """Base resume model with shared fields"""
    user_id: str = Field(index=True)
    name: str
    original_file_name: str
    file_path: str = Field(default="")  # Empty for resumes created from text
    content: str  # Extracted text content

    # Parsed fields
    skills: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    experience: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    is_default: bool = Field(default=False)


class Resume(ResumeBase, table=True):
    """Resume table model"""
    __tablename__ = "resumes"

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)


class ResumeCreate(ResumeBase):
    """Model for creating new resumes"""
    pass


class ResumeRead(ResumeBase):
    """Model for reading resumes"""
    id: str
    created_at: datetime


class ResumeTextCreate(SQLModel):
    """Model for creating a resume from pasted text"""
    name: str
    content: str = Field(min_length=1)
    skills: Optional[List[str]] = None
    is_default: bool = False


class ResumeUpdate(SQLModel):
    """Model for updating resumes"""
    name: Optional[str] = None
    content: Optional[str] = None
    skills: Optional[List[str]] = None
    experience: Optional[Any] = None
    is_default: Optional[bool] = None
