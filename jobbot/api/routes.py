"""
Main API router that includes all endpoint routes
"""

from fastapi import APIRouter
from .endpoints import (
    ai,
    applications,
    automation,
    cover_letters,
    dashboard,
    job_search,
    jobs,
    llm_status,
    resumes,
    system,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(job_search.router, prefix="/job-search", tags=["job-search"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(resumes.router, prefix="/resumes", tags=["resumes"])
api_router.include_router(cover_letters.router, prefix="/cover-letters", tags=["cover-letters"])
api_router.include_router(applications.router, prefix="/applications", tags=["applications"])
api_router.include_router(automation.router, prefix="/automation", tags=["automation"])
api_router.include_router(system.router, prefix="/system", tags=["system"])
api_router.include_router(ai.router, prefix="/ai", tags=["ai"])
api_router.include_router(llm_status.router, prefix="/llm", tags=["llm"])
