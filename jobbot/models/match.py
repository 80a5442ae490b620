"""
Result models for AI features (not persisted)
"""

from typing import List, Optional
from sqlmodel import SQLModel, Field


class JobMatchScore(SQLModel):
    """How well a resume fits a job"""
    job_id: str
    score: float = Field(ge=0.0, le=100.0)  # Percentage match
    match_reasons: List[str] = Field(default_factory=list)
    skills_match: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    salary_match: bool = True
    location_match: bool = True
    recommendations: List[str] = Field(default_factory=list)
    method: str = "llm"  # llm or heuristic


class JobMatchWithDetails(JobMatchScore):
    """Match score with the job headline attached"""
    title: str
    company: str
    location: Optional[str] = None
    url: str


class AutoApplicationResult(SQLModel):
    """Outcome of one intelligent application attempt"""
    success: bool
    job_id: str
    application_id: Optional[str] = None
    cover_letter_id: Optional[str] = None
    error: Optional[str] = None
    match_score: float = 0


class ApplicationPattern(SQLModel):
    """Success/rejection analysis across a user's applications"""
    success_rate: float
    common_success_factors: List[str] = Field(default_factory=list)
    rejection_reasons: List[str] = Field(default_factory=list)
    recommended_improvements: List[str] = Field(default_factory=list)


class LearningInsight(SQLModel):
    """One actionable observation about the user's job search"""
    category: str
    insight: str
    actionable: str
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
