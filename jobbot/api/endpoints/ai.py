"""
API endpoints for AI job matching, intelligent applications and adaptive learning
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from ...db.storage import Storage
from ...models.match import (
    ApplicationPattern,
    AutoApplicationResult,
    JobMatchScore,
    JobMatchWithDetails,
    LearningInsight,
)
from ...services.applications import IntelligentApplicationService
from ...services.learning import AdaptiveLearningService
from ...services.matcher import JobMatcherService
from ..deps import get_application_service, get_learning_service, get_matcher, get_storage, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/job-matches", response_model=List[JobMatchWithDetails])
async def job_matches(
    limit: int = Query(10, ge=1, le=50),
    matcher: JobMatcherService = Depends(get_matcher),
    user_id: str = Depends(get_user_id),
):
    """Best-matching recent jobs for the default resume"""
    try:
        return await matcher.find_best_matches(user_id, limit)
    except Exception as e:
        logger.error(f"Error finding job matches: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to find job matches: {e}")


@router.post("/analyze-job/{job_id}", response_model=JobMatchScore)
async def analyze_job(
    job_id: str,
    storage: Storage = Depends(get_storage),
    matcher: JobMatcherService = Depends(get_matcher),
    user_id: str = Depends(get_user_id),
):
    job = storage.get_job(job_id)
    resume = storage.get_default_resume(user_id)
    if not job or not resume:
        raise HTTPException(status_code=404, detail="Job or resume not found")
    return await matcher.analyze_job_match(job, resume)


@router.post("/auto-apply/{job_id}", response_model=AutoApplicationResult)
async def auto_apply(
    job_id: str,
    storage: Storage = Depends(get_storage),
    service: IntelligentApplicationService = Depends(get_application_service),
    user_id: str = Depends(get_user_id),
):
    job = storage.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return await service.attempt_auto_application(job, user_id)


@router.get("/learning-insights", response_model=List[LearningInsight])
async def learning_insights(
    service: AdaptiveLearningService = Depends(get_learning_service),
    user_id: str = Depends(get_user_id),
):
    return await service.generate_learning_insights(user_id)


@router.get("/application-patterns", response_model=ApplicationPattern)
async def application_patterns(
    service: AdaptiveLearningService = Depends(get_learning_service),
    user_id: str = Depends(get_user_id),
):
    return await service.analyze_application_patterns(user_id)


@router.get("/search-keywords")
async def search_keywords(
    service: AdaptiveLearningService = Depends(get_learning_service),
    user_id: str = Depends(get_user_id),
) -> Dict[str, List[str]]:
    return {"keywords": await service.optimize_search_keywords(user_id)}


@router.get("/automation-strategy")
async def automation_strategy(
    service: AdaptiveLearningService = Depends(get_learning_service),
    user_id: str = Depends(get_user_id),
) -> Dict[str, Any]:
    return await service.adapt_automation_strategy(user_id)
