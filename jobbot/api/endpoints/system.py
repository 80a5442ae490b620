"""
API endpoints for per-user system configuration
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from ...db.storage import Storage
from ...models.automation import SystemConfig, SystemConfigBase, SystemConfigCreate
from ...services.llm import LLMService, mask_secret
from ..deps import get_llm, get_storage, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


def _public(config: Optional[SystemConfig]) -> Dict[str, Any]:
    if not config:
        return {}
    data = config.model_dump()
    data["openai_api_key"] = mask_secret(config.openai_api_key)
    return data


@router.get("/config")
async def get_system_config(storage: Storage = Depends(get_storage), user_id: str = Depends(get_user_id)):
    """Saved configuration with the API key masked, or {} when none"""
    return _public(storage.get_system_config(user_id))


@router.post("/config")
async def save_system_config(
    body: SystemConfigCreate,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
    llm: LLMService = Depends(get_llm),
):
    existing = storage.get_system_config(user_id)
    if existing:
        config = storage.update_system_config(user_id, body.model_dump(exclude_unset=True))
    else:
        config = storage.create_system_config(SystemConfigBase(**body.model_dump(), user_id=user_id))

    if "openai_api_key" in body.model_fields_set:
        logger.info("🔑 OpenAI API key updated, re-checking LLM providers")
        llm.configure(openai_api_key=config.openai_api_key or llm.config.openai_api_key)

    return _public(config)
