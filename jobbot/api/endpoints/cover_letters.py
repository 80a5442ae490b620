"""
API endpoints for cover letters
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import SQLModel, Field

from ...db.storage import Storage
from ...models.application import CoverLetterCreate, CoverLetterRead
from ...services.llm import LLMService
from ..deps import get_llm, get_storage, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


class CoverLetterRequest(SQLModel):
    job_id: str
    resume_id: str
    applicant_name: str = Field(min_length=1)


@router.post("/generate")
async def generate_cover_letter(
    body: CoverLetterRequest,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    llm: LLMService = Depends(get_llm),
) -> Dict[str, Any]:
    """Write and store a cover letter for a job"""
    job = storage.get_job(body.job_id)
    resume = storage.get_resume(body.resume_id)
    if not job or not resume:
        raise HTTPException(status_code=404, detail="Job or resume not found")

    try:
        letter = await llm.generate_cover_letter(
            job.title,
            job.company,
            body.applicant_name,
            requirements=job.requirements,
            resume_content=resume.content,
            job_description=job.description,
        )
        saved = storage.create_cover_letter(CoverLetterCreate(
            user_id=user_id,
            job_id=job.id,
            content=letter["content"],
            is_generated=True,
        ))
    except Exception as e:
        logger.error(f"Error generating cover letter: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to generate cover letter: {e}")

    return {
        **CoverLetterRead.model_validate(saved).model_dump(),
        "tone": letter["tone"],
        "key_points": letter["key_points"],
    }


@router.get("", response_model=List[CoverLetterRead])
async def get_cover_letters(storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    return storage.get_cover_letters(user_id)


@router.get("/{cover_letter_id}", response_model=CoverLetterRead)
async def get_cover_letter(
    cover_letter_id: str,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
):
    cover_letter = storage.get_cover_letter(cover_letter_id)
    if not cover_letter or cover_letter.user_id != user_id:
        raise HTTPException(status_code=404, detail="Cover letter not found")
    return cover_letter
