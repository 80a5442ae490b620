"""
API endpoints for automation logs and the auto-apply switch
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlmodel import SQLModel

from ...db.storage import Storage
from ...models.automation import AutomationLogRead, SystemConfigBase
from ..deps import get_storage, get_user_id

router = APIRouter()


class AutomationToggle(SQLModel):
    enabled: bool


@router.get("/logs", response_model=List[AutomationLogRead])
async def get_automation_logs(
    limit: int = Query(50, ge=1, le=500),
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
):
    return storage.get_automation_logs(user_id, limit)


@router.post("/toggle")
async def toggle_automation(
    body: AutomationToggle,
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_user_id),
):
    """Turn automatic applications on or off"""
    config = storage.update_system_config(user_id, {"automation_enabled": body.enabled})
    if not config:
        config = storage.create_system_config(SystemConfigBase(user_id=user_id, automation_enabled=body.enabled))

    storage.log_action(user_id, "automation_toggle", "success", enabled=body.enabled)
    return {"success": True, "enabled": config.automation_enabled}
