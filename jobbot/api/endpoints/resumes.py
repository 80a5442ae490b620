"""
API endpoints for resume management and resume AI tools
"""

import logging
import mimetypes
import os
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse

from ...core.config import Settings
from ...core.utils import new_id
from ...db.storage import Storage
from ...models.resume import Resume, ResumeCreate, ResumeRead, ResumeTextCreate, ResumeUpdate
from ...services.llm import LLMService
from ...services.resume_parser import SUPPORTED_EXTENSIONS, extract_text
from ..deps import get_llm, get_settings, get_storage, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_resume(storage: Storage, resume_id: str, user_id: str) -> Resume:
    resume = storage.get_resume(resume_id)
    if not resume or resume.user_id != user_id:
        raise HTTPException(status_code=404, detail="Resume not found")
    return resume


@router.get("", response_model=List[ResumeRead])
async def get_resumes(storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    return storage.get_resumes(user_id)


@router.post("/upload", response_model=ResumeRead)
async def upload_resume(
    resume: UploadFile = File(...),
    name: Optional[str] = Form(None),
    is_default: bool = Form(False),
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    config: Settings = Depends(get_settings),
    llm: LLMService = Depends(get_llm),
):
    """
    Upload a resume file (PDF, DOC, DOCX, TXT)

    The text is extracted, skills are pulled out by the LLM and the file is
    kept on disk for later download.
    """
    filename = resume.filename or ""
    file_ext = os.path.splitext(filename)[1].lower()
    if file_ext not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type. Allowed: {', '.join(SUPPORTED_EXTENSIONS)}",
        )

    file_content = await resume.read()
    if not file_content:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if len(file_content) > config.max_upload_size:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {config.max_upload_size // (1024 * 1024)}MB",
        )

    try:
        text = await run_in_threadpool(extract_text, file_content, filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    file_path = None
    try:
        os.makedirs(config.upload_dir, exist_ok=True)
        file_path = os.path.join(config.upload_dir, f"{new_id()}{file_ext}")
        with open(file_path, "wb") as f:
            f.write(file_content)

        skills = await llm.extract_resume_skills(text)
        logger.info(f"📄 Resume {filename} uploaded with {len(skills)} skills")

        return storage.create_resume(ResumeCreate(
            user_id=user_id,
            name=name or filename,
            original_file_name=filename,
            file_path=file_path,
            content=text,
            skills=skills,
            is_default=is_default,
        ))
    except Exception as e:
        logger.error(f"Resume upload failed: {e}")
        if file_path and os.path.exists(file_path):
            os.remove(file_path)
        raise HTTPException(status_code=500, detail=f"Failed to upload resume: {e}")


@router.post("/text", response_model=ResumeRead)
async def create_resume_from_text(
    body: ResumeTextCreate,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    llm: LLMService = Depends(get_llm),
):
    """Create a resume from pasted text"""
    skills = body.skills if body.skills is not None else await llm.extract_resume_skills(body.content)
    return storage.create_resume(ResumeCreate(
        user_id=user_id,
        name=body.name,
        original_file_name=f"{body.name}.txt",
        content=body.content,
        skills=skills,
        is_default=body.is_default,
    ))


@router.get("/{resume_id}", response_model=ResumeRead)
async def get_resume(resume_id: str, storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    return _get_user_resume(storage, resume_id, user_id)


@router.put("/{resume_id}", response_model=ResumeRead)
async def update_resume(
    resume_id: str,
    body: ResumeUpdate,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
):
    _get_user_resume(storage, resume_id, user_id)
    return storage.update_resume(resume_id, body.model_dump(exclude_unset=True))


@router.delete("/{resume_id}")
async def delete_resume(resume_id: str, storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    resume = _get_user_resume(storage, resume_id, user_id)
    file_path = resume.file_path

    storage.delete_resume(resume_id)
    if file_path and os.path.exists(file_path):
        os.remove(file_path)
    return {"success": True, "id": resume_id}


@router.get("/{resume_id}/download")
async def download_resume(resume_id: str, storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    resume = _get_user_resume(storage, resume_id, user_id)
    if not resume.file_path or not os.path.exists(resume.file_path):
        raise HTTPException(status_code=404, detail="Resume file not found on disk")

    media_type = mimetypes.guess_type(resume.original_file_name)[0] or "application/octet-stream"
    return FileResponse(resume.file_path, media_type=media_type, filename=resume.original_file_name)


@router.get("/{resume_id}/optimize")
async def get_optimization_suggestions(
    resume_id: str,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    llm: LLMService = Depends(get_llm),
) -> Dict[str, Any]:
    resume = _get_user_resume(storage, resume_id, user_id)
    suggestions = await llm.get_resume_optimization_suggestions(resume.content)
    return {
        "success": True,
        "resume_id": resume.id,
        "suggestions": suggestions,
        "current_skills": resume.skills or [],
        "recommendations": [
            "Add more quantifiable achievements",
            "Include relevant keywords for your target roles",
            "Highlight your most recent and relevant experience",
        ],
    }


@router.post("/{resume_id}/optimize/{job_id}")
async def optimize_resume_for_job(
    resume_id: str,
    job_id: str,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    llm: LLMService = Depends(get_llm),
) -> Dict[str, Any]:
    """Tailor a resume to one job posting"""
    resume = _get_user_resume(storage, resume_id, user_id)
    job = storage.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    result = await llm.optimize_resume(resume.content, job.description or "", job.title)
    return {
        "success": True,
        "original_content": resume.content,
        "optimized_content": result["optimized_content"],
        "job_title": job.title,
        "company": job.company,
        "suggestions": result["suggestions"],
        "match_score": result["match_score"],
    }


@router.get("/{resume_id}/ats")
async def check_ats(
    resume_id: str,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    llm: LLMService = Depends(get_llm),
) -> Dict[str, Any]:
    resume = _get_user_resume(storage, resume_id, user_id)
    return {"resume_id": resume.id, **await llm.check_ats_compatibility(resume.content)}


@router.post("/{resume_id}/keywords/{job_id}")
async def keyword_analysis(
    resume_id: str,
    job_id: str,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    llm: LLMService = Depends(get_llm),
) -> Dict[str, Any]:
    resume = _get_user_resume(storage, resume_id, user_id)
    job = storage.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    description = "\n".join(part for part in (job.description, job.requirements) if part)
    analysis = await llm.perform_keyword_analysis(resume.content, description)
    return {"resume_id": resume.id, "job_id": job.id, **analysis}
