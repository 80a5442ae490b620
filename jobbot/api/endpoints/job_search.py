"""
API endpoints for search configuration, manual searches and the search schedule
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from ...core.config import Settings
from ...db.storage import Storage
from ...models.automation import JobSearchConfigBase, JobSearchConfigCreate, JobSearchConfigRead
from ...models.job import JobRead
from ...services.scheduler import ScheduledJobSearchService, persist_new_jobs
from ..deps import get_scheduler, get_scraper_factory, get_settings, get_storage, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/config", response_model=Optional[JobSearchConfigRead])
async def get_search_config(storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    return storage.get_job_search_config(user_id)


@router.post("/config", response_model=JobSearchConfigRead)
async def save_search_config(
    body: JobSearchConfigCreate,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
):
    """Create or replace the user's search configuration"""
    data = JobSearchConfigBase(**body.model_dump(), user_id=user_id)

    existing = storage.get_job_search_config(user_id)
    if existing:
        return storage.update_job_search_config(existing.id, data.model_dump())
    return storage.create_job_search_config(data)


@router.post("/manual")
async def manual_job_search(
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    config: Settings = Depends(get_settings),
    scraper_factory=Depends(get_scraper_factory),
) -> Dict[str, Any]:
    """Scrape now with the saved configuration and store the new jobs"""
    search_config = storage.get_job_search_config(user_id)
    if not search_config or not search_config.keywords:
        raise HTTPException(
            status_code=400,
            detail="Job search configuration not found. Please configure your search criteria first.",
        )

    try:
        logger.info("Starting manual job search...")
        async with scraper_factory(config) as scraper:
            scraped = await scraper.scrape_all_job_boards(
                search_config.keywords,
                search_config.locations,
                config.manual_search_limit,
                search_config.job_boards,
            )

        saved = persist_new_jobs(storage, scraped)
        storage.log_action(
            user_id, "manual_job_search", "success",
            keywords=search_config.keywords,
            jobs_found=len(saved),
            total_scraped=len(scraped),
        )
    except Exception as e:
        logger.error(f"Error in manual job search: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to perform job search: {e}")

    return {
        "message": f"Found {len(saved)} new jobs",
        "jobs_found": len(saved),
        "total_scraped": len(scraped),
        "jobs": [JobRead.model_validate(job).model_dump(mode="json") for job in saved[:10]],
    }


@router.post("/start-automation")
async def start_automation(scheduler: ScheduledJobSearchService = Depends(get_scheduler)):
    try:
        await scheduler.start()
    except Exception as e:
        logger.error(f"Error starting automatic job search: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to start automatic job search: {e}")
    return {"message": "Automatic job search started", "status": "running"}


@router.post("/stop-automation")
async def stop_automation(scheduler: ScheduledJobSearchService = Depends(get_scheduler)):
    await scheduler.stop()
    return {"message": "Automatic job search stopped", "status": "stopped"}


@router.get("/automation-status")
async def automation_status(scheduler: ScheduledJobSearchService = Depends(get_scheduler)):
    return scheduler.status()
