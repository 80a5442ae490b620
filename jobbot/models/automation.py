"""
Database models for search configuration, automation logs and system settings
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from ..core.utils import new_id, utcnow


class JobSearchConfigBase(SQLModel):
    """Base job search configuration with shared fields"""
    user_id: str = Field(index=True)
    keywords: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    locations: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    job_boards: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    salary_min: Optional[int] = Field(default=None)
    salary_max: Optional[int] = Field(default=None)
    experience_level: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)


class JobSearchConfig(JobSearchConfigBase, table=True):
    """Job search configuration table model"""
    __tablename__ = "job_search_configs"

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)


class JobSearchConfigCreate(SQLModel):
    """Request body for saving the search configuration"""
    keywords: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    job_boards: List[str] = Field(default_factory=list)
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    experience_level: Optional[str] = None
    is_active: bool = True


class JobSearchConfigRead(JobSearchConfigBase):
    """Model for reading search configurations"""
    id: str
    created_at: datetime


class AutomationLogBase(SQLModel):
    """Base automation log with shared fields"""
    user_id: str = Field(index=True)
    action: str = Field(index=True)
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    status: str  # success, error, warning, failed


class AutomationLog(AutomationLogBase, table=True):
    """Automation log table model"""
    __tablename__ = "automation_logs"

    id: str = Field(default_factory=new_id, primary_key=True)
    timestamp: datetime = Field(default_factory=utcnow, index=True)


class AutomationLogCreate(AutomationLogBase):
    """Model for creating automation logs"""
    pass


class AutomationLogRead(AutomationLogBase):
    """Model for reading automation logs"""
    id: str
    timestamp: datetime


class SystemConfigBase(SQLModel):
    """Base system configuration with shared fields"""
    user_id: str = Field(index=True)
    openai_api_key: Optional[str] = Field(default=None)
    automation_enabled: bool = Field(default=False)
    daily_application_limit: int = Field(default=10, ge=0)
    scrape_interval: int = Field(default=60, ge=1)  # minutes


class SystemConfig(SystemConfigBase, table=True):
    """System configuration table model"""
    __tablename__ = "system_configs"

    id: str = Field(default_factory=new_id, primary_key=True)


class SystemConfigCreate(SQLModel):
    """Request body for saving system configuration"""
    openai_api_key: Optional[str] = None
    automation_enabled: bool = False
    daily_application_limit: int = Field(default=10, ge=0)
    scrape_interval: int = Field(default=60, ge=1)


class SystemConfigRead(SystemConfigBase):
    """Model for reading system configuration"""
    id: str
