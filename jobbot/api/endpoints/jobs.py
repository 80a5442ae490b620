"""
API endpoints for job listings
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...db.storage import Storage
from ...models.job import JobCreate, JobRead, JobUpdate
from ...services.llm import LLMService
from ..deps import get_llm, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()


def _split(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


@router.get("", response_model=List[JobRead])
async def get_jobs(limit: int = Query(50, ge=1, le=500), storage: Storage = Depends(get_storage)):
    """Active jobs, newest first"""
    return storage.get_jobs(limit)


@router.get("/search", response_model=List[JobRead])
async def search_jobs(
    keywords: str = Query(..., min_length=1, description="Comma-separated keywords"),
    locations: Optional[str] = Query(None, description="Comma-separated locations"),
    storage: Storage = Depends(get_storage),
):
    """Search stored jobs by keyword and location"""
    terms = _split(keywords)
    if not terms:
        raise HTTPException(status_code=400, detail="At least one keyword is required")
    return storage.search_jobs(terms, _split(locations))


@router.get("/{job_id}", response_model=JobRead)
async def get_job(job_id: str, storage: Storage = Depends(get_storage)):
    job = storage.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("", response_model=JobRead)
async def create_job(job: JobCreate, storage: Storage = Depends(get_storage)):
    """Add a job by hand"""
    return storage.create_job(job)


@router.put("/{job_id}", response_model=JobRead)
async def update_job(job_id: str, job: JobUpdate, storage: Storage = Depends(get_storage)):
    updated = storage.update_job(job_id, job.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=404, detail="Job not found")
    return updated


@router.get("/{job_id}/analysis")
async def analyze_job_description(
    job_id: str,
    storage: Storage = Depends(get_storage),
    llm: LLMService = Depends(get_llm),
) -> Dict[str, Any]:
    """Required skills, experience level and key requirements of a posting"""
    job = storage.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    text = "\n".join(part for part in (job.title, job.description, job.requirements) if part)
    analysis = await llm.analyze_job_description(text)
    return {"job_id": job.id, **analysis}
