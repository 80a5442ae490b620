"""
Storage layer for jobs, resumes, applications and automation state
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlmodel import Session, SQLModel, col, select

from ..core.utils import utcnow
from ..models.application import (
    ApplicationStats,
    ApplicationStatus,
    CoverLetter,
    CoverLetterCreate,
    JobApplication,
    JobApplicationCreate,
)
from ..models.automation import (
    AutomationLog,
    AutomationLogCreate,
    JobSearchConfig,
    JobSearchConfigBase,
    SystemConfig,
    SystemConfigBase,
)
from ..models.job import Job, JobCreate
from ..models.resume import Resume, ResumeCreate

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class Storage:
    """Repository over a single database session"""

    def __init__(self, session: Session):
        self.session = session

    # Helpers

    def _save(self, obj: ModelT) -> ModelT:
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def _apply(self, obj: ModelT, data: Dict[str, Any]) -> ModelT:
        for key, value in data.items():
            if key == "id" or not hasattr(obj, key):
                continue
            setattr(obj, key, value)
        return self._save(obj)

    def _get(self, model: Type[ModelT], obj_id: str) -> Optional[ModelT]:
        return self.session.get(model, obj_id)

    # Job search config

    def get_job_search_config(self, user_id: str) -> Optional[JobSearchConfig]:
        statement = select(JobSearchConfig).where(JobSearchConfig.user_id == user_id)
        return self.session.exec(statement).first()

    def create_job_search_config(self, config: JobSearchConfigBase) -> JobSearchConfig:
        return self._save(JobSearchConfig.model_validate(config))

    def update_job_search_config(self, config_id: str, data: Dict[str, Any]) -> Optional[JobSearchConfig]:
        existing = self._get(JobSearchConfig, config_id)
        if not existing:
            return None
        return self._apply(existing, data)

    # Resumes

    def get_resumes(self, user_id: str) -> List[Resume]:
        statement = (
            select(Resume)
            .where(Resume.user_id == user_id)
            .order_by(col(Resume.created_at))
        )
        return list(self.session.exec(statement).all())

    def get_resume(self, resume_id: str) -> Optional[Resume]:
        return self._get(Resume, resume_id)

    def get_default_resume(self, user_id: str) -> Optional[Resume]:
        """The user's default resume, else the first one uploaded"""
        resumes = self.get_resumes(user_id)
        if not resumes:
            return None
        return next((r for r in resumes if r.is_default), resumes[0])

    def create_resume(self, resume: ResumeCreate) -> Resume:
        if resume.is_default:
            self._clear_default_resume(resume.user_id)
        return self._save(Resume.model_validate(resume))

    def update_resume(self, resume_id: str, data: Dict[str, Any]) -> Optional[Resume]:
        existing = self._get(Resume, resume_id)
        if not existing:
            return None
        if data.get("is_default"):
            self._clear_default_resume(existing.user_id, keep_id=resume_id)
        return self._apply(existing, data)

    def delete_resume(self, resume_id: str) -> bool:
        existing = self._get(Resume, resume_id)
        if not existing:
            return False
        self.session.delete(existing)
        self.session.commit()
        return True

    def _clear_default_resume(self, user_id: str, keep_id: Optional[str] = None) -> None:
        for resume in self.get_resumes(user_id):
            if resume.is_default and resume.id != keep_id:
                resume.is_default = False
                self.session.add(resume)
        self.session.commit()

    # Jobs

    def get_jobs(self, limit: int = 100) -> List[Job]:
        """Active jobs, most recently discovered first"""
        statement = (
            select(Job)
            .where(Job.is_active == True)  # noqa: E712
            .order_by(col(Job.discovered_at).desc())
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    def get_job(self, job_id: str) -> Optional[Job]:
        return self._get(Job, job_id)

    def create_job(self, job: JobCreate) -> Job:
        return self._save(Job.model_validate(job))

    def update_job(self, job_id: str, data: Dict[str, Any]) -> Optional[Job]:
        existing = self._get(Job, job_id)
        if not existing:
            return None
        return self._apply(existing, data)

    def find_job_by_external_id(self, job_board: str, external_id: str) -> Optional[Job]:
        statement = select(Job).where(Job.job_board == job_board, Job.external_id == external_id)
        return self.session.exec(statement).first()

    def search_jobs(self, keywords: List[str], locations: Optional[List[str]] = None) -> List[Job]:
        """
        Active jobs whose title or description mentions any keyword

        Args:
            keywords: Terms matched case-insensitively against title and description
            locations: When given, the job location must contain one of them

        Returns:
            Matching jobs, most recently discovered first
        """
        keywords = [k.lower() for k in keywords if k.strip()]
        locations = [loc.lower() for loc in (locations or []) if loc.strip()]

        statement = (
            select(Job)
            .where(Job.is_active == True)  # noqa: E712
            .order_by(col(Job.discovered_at).desc())
        )

        results = []
        for job in self.session.exec(statement).all():
            title = job.title.lower()
            description = (job.description or "").lower()
            if not any(k in title or k in description for k in keywords):
                continue
            if locations:
                job_location = (job.location or "").lower()
                if not any(loc in job_location for loc in locations):
                    continue
            results.append(job)
        return results

    # Applications

    def get_applications(self, user_id: str) -> List[JobApplication]:
        statement = (
            select(JobApplication)
            .where(JobApplication.user_id == user_id)
            .order_by(col(JobApplication.applied_at).desc())
        )
        return list(self.session.exec(statement).all())

    def get_application(self, application_id: str) -> Optional[JobApplication]:
        return self._get(JobApplication, application_id)

    def create_application(self, application: JobApplicationCreate) -> JobApplication:
        return self._save(JobApplication.model_validate(application))

    def update_application(self, application_id: str, data: Dict[str, Any]) -> Optional[JobApplication]:
        existing = self._get(JobApplication, application_id)
        if not existing:
            return None
        data = {**data, "last_updated": utcnow()}
        return self._apply(existing, data)

    def has_applied(self, user_id: str, job_id: str) -> bool:
        statement = select(JobApplication).where(
            JobApplication.user_id == user_id, JobApplication.job_id == job_id
        )
        return self.session.exec(statement).first() is not None

    def get_application_stats(self, user_id: str) -> ApplicationStats:
        applications = self.get_applications(user_id)
        counts = {status.value: 0 for status in ApplicationStatus}
        for application in applications:
            if application.status in counts:
                counts[application.status] += 1
        return ApplicationStats(total=len(applications), **counts)

    # Cover letters

    def get_cover_letters(self, user_id: str) -> List[CoverLetter]:
        statement = (
            select(CoverLetter)
            .where(CoverLetter.user_id == user_id)
            .order_by(col(CoverLetter.generated_at).desc())
        )
        return list(self.session.exec(statement).all())

    def get_cover_letter(self, cover_letter_id: str) -> Optional[CoverLetter]:
        return self._get(CoverLetter, cover_letter_id)

    def create_cover_letter(self, cover_letter: CoverLetterCreate) -> CoverLetter:
        return self._save(CoverLetter.model_validate(cover_letter))

    # Automation logs

    def get_automation_logs(self, user_id: str, limit: int = 50) -> List[AutomationLog]:
        statement = (
            select(AutomationLog)
            .where(AutomationLog.user_id == user_id)
            .order_by(col(AutomationLog.timestamp).desc())
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    def create_automation_log(self, log: AutomationLogCreate) -> AutomationLog:
        return self._save(AutomationLog.model_validate(log))

    def log_action(self, user_id: str, action: str, status: str, **details: Any) -> AutomationLog:
        """Shorthand for recording an automation event"""
        return self.create_automation_log(
            AutomationLogCreate(user_id=user_id, action=action, status=status, details=details)
        )

    # System config

    def get_system_config(self, user_id: str) -> Optional[SystemConfig]:
        statement = select(SystemConfig).where(SystemConfig.user_id == user_id)
        return self.session.exec(statement).first()

    def create_system_config(self, config: SystemConfigBase) -> SystemConfig:
        return self._save(SystemConfig.model_validate(config))

    def update_system_config(self, user_id: str, data: Dict[str, Any]) -> Optional[SystemConfig]:
        existing = self.get_system_config(user_id)
        if not existing:
            return None
        return self._apply(existing, data)
