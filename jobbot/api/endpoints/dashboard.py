"""
API endpoints for the dashboard overview
"""

from fastapi import APIRouter, Depends

from ...db.storage import Storage
from ...models.application import SUCCESS_STATUSES, ApplicationStatus, DashboardStats
from ..deps import get_storage, get_user_id

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    applications = storage.get_applications(user_id)
    jobs = storage.get_jobs(100)
    resumes = storage.get_resumes(user_id)

    interviews = sum(1 for a in applications if a.status == ApplicationStatus.interview.value)
    decided = [
        a for a in applications
        if a.status in SUCCESS_STATUSES or a.status == ApplicationStatus.rejected.value
    ]
    succeeded = sum(1 for a in decided if a.status in SUCCESS_STATUSES)

    return DashboardStats(
        applications_sent=len(applications),
        response_rate=round(interviews / len(applications) * 100) if applications else 0,
        active_jobs=sum(1 for job in jobs if job.is_active),
        total_resumes=len(resumes),
        ai_accuracy=round(succeeded / len(decided) * 100) if decided else 0,
    )
