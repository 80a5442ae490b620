"""
API endpoints for job applications
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import SQLModel

from ...db.storage import Storage
from ...models.application import (
    ApplicantInfo,
    ApplicationStats,
    JobApplicationRead,
    JobApplicationUpdate,
)
from ...models.job import JobRead
from ...services.applications import IntelligentApplicationService
from ..deps import get_application_service, get_storage, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


class ApplyRequest(SQLModel):
    job_id: str
    resume_id: str
    cover_letter_id: Optional[str] = None
    applicant_data: Optional[ApplicantInfo] = None


class RecentApplication(JobApplicationRead):
    job_title: str
    company: str


class ApplicationWithJob(JobApplicationRead):
    job: Optional[JobRead] = None


@router.get("/recent", response_model=List[RecentApplication])
async def recent_applications(storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    """The ten newest applications with their job headline"""
    results = []
    for application in storage.get_applications(user_id)[:10]:
        job = storage.get_job(application.job_id)
        results.append(RecentApplication(
            **application.model_dump(),
            job_title=job.title if job else "Unknown Position",
            company=job.company if job else "Unknown Company",
        ))
    return results


@router.get("/stats", response_model=ApplicationStats)
async def application_stats(storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    return storage.get_application_stats(user_id)


@router.get("", response_model=List[ApplicationWithJob])
async def get_applications(storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    results = []
    for application in storage.get_applications(user_id):
        job = storage.get_job(application.job_id)
        results.append(ApplicationWithJob(
            **application.model_dump(),
            job=JobRead.model_validate(job) if job else None,
        ))
    return results


@router.post("/apply")
async def apply_to_job(
    body: ApplyRequest,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    service: IntelligentApplicationService = Depends(get_application_service),
) -> Dict[str, Any]:
    """Record an application and fill the job's form through the browser"""
    job = storage.get_job(body.job_id)
    resume = storage.get_resume(body.resume_id)
    if not job or not resume:
        raise HTTPException(status_code=404, detail="Job or resume not found")

    cover_letter = ""
    if body.cover_letter_id:
        letter = storage.get_cover_letter(body.cover_letter_id)
        cover_letter = letter.content if letter else ""

    try:
        application, error = await service.apply_to_job(
            user_id, job, resume, cover_letter=cover_letter, applicant=body.applicant_data
        )
    except Exception as e:
        logger.error(f"Error applying to job: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to apply to job: {e}")

    data = JobApplicationRead.model_validate(application).model_dump(mode="json")
    if error:
        raise HTTPException(status_code=500, detail={
            "error": "Automation failed",
            "application": data,
            "message": "Application created but automation failed. You may need to apply manually.",
        })

    return {**data, "message": application.notes}


@router.patch("/{application_id}", response_model=JobApplicationRead)
async def update_application(
    application_id: str,
    body: JobApplicationUpdate,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
):
    """Record an employer response or add notes"""
    existing = storage.get_application(application_id)
    if not existing or existing.user_id != user_id:
        raise HTTPException(status_code=404, detail="Application not found")
    return storage.update_application(application_id, body.model_dump(exclude_unset=True, mode="json"))
