"""
Database models for job applications and cover letters
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field

from ..core.utils import new_id, utcnow


class ApplicationStatus(str, Enum):
    pending = "pending"
    submitted = "submitted"
    interview = "interview"
    rejected = "rejected"
    offer = "offer"


# Statuses that count as a positive employer response
SUCCESS_STATUSES = (ApplicationStatus.interview.value, ApplicationStatus.offer.value)


class JobApplicationBase(SQLModel):
    """Base application model with shared fields"""
    user_id: str = Field(index=True)
    job_id: str = Field(foreign_key="jobs.id", index=True)
    resume_id: str = Field(foreign_key="resumes.id", index=True)
    cover_letter: Optional[str] = Field(default=None)
    status: str = Field(default=ApplicationStatus.pending.value, index=True)
    notes: Optional[str] = Field(default=None)


class JobApplication(JobApplicationBase, table=True):
    """Job application table model"""
    __tablename__ = "job_applications"

    id: str = Field(default_factory=new_id, primary_key=True)
    applied_at: datetime = Field(default_factory=utcnow, index=True)
    last_updated: datetime = Field(default_factory=utcnow)


class JobApplicationCreate(JobApplicationBase):
    """Model for creating new applications"""
    pass


class JobApplicationRead(JobApplicationBase):
    """Model for reading applications"""
    id: str
    applied_at: datetime
    last_updated: datetime


class JobApplicationUpdate(SQLModel):
    """Model for updating applications"""
    status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None
    cover_letter: Optional[str] = None


class ApplicationStats(SQLModel):
    """Per-status application counts for a user"""
    total: int = 0
    pending: int = 0
    submitted: int = 0
    interview: int = 0
    rejected: int = 0
    offer: int = 0


class CoverLetterBase(SQLModel):
    """Base cover letter model with shared fields"""
    user_id: str = Field(index=True)
    job_id: str = Field(foreign_key="jobs.id", index=True)
    content: str
    is_generated: bool = Field(default=True)


class CoverLetter(CoverLetterBase, table=True):
    """Cover letter table model"""
    __tablename__ = "cover_letters"

    id: str = Field(default_factory=new_id, primary_key=True)
    generated_at: datetime = Field(default_factory=utcnow)


class CoverLetterCreate(CoverLetterBase):
    """Model for creating new cover letters"""
    pass


class CoverLetterRead(CoverLetterBase):
    """Model for reading cover letters"""
    id: str
    generated_at: datetime


class ApplicantInfo(SQLModel):
    """Personal details typed into application forms"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None


class ApplicationFormData(ApplicantInfo):
    """Everything the browser needs to fill one application form"""
    cover_letter: Optional[str] = None
    resume: Optional[str] = None  # Path to the resume file


class DashboardStats(SQLModel):
    """Headline numbers for the dashboard"""
    applications_sent: int
    response_rate: int  # Percentage of applications that reached interview
    active_jobs: int
    total_resumes: int
    ai_accuracy: int  # Percentage of decided applications that succeeded
