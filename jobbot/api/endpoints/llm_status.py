"""
API endpoints reporting LLM provider availability
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...services.llm import LLMService
from ..deps import get_llm

router = APIRouter()


@router.get("/status")
async def llm_status(llm: LLMService = Depends(get_llm)) -> Dict[str, Any]:
    """Probe every provider and report which one answers requests"""
    return await llm.provider_status()


@router.get("/setup-guide")
async def setup_guide(llm: LLMService = Depends(get_llm)) -> Dict[str, Any]:
    return llm.setup_guide()
