from typing import Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_roles
from app.core.database import get_db
from app.core.permissions import Principal, RoleName
from app.core.security import get_client_ip
from app.schemas.settings import SettingsResponse
from app.services.audit_service import audit_service
from app.services.settings_service import SettingsService

router = APIRouter()


@router.get("/", response_model=SettingsResponse)
async def get_settings(db: AsyncSession = Depends(get_db)):
    """
    Public system settings (name, branding, contact) as a key/value map.
    Keys that were never changed carry their defaults.
    """
    return {"settings": await SettingsService(db).get_settings()}


@router.put("/")
async def update_settings(
    request: Request,
    body: Dict[str, str],
    current_user: Principal = Depends(require_roles(RoleName.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Update one or more settings. Unknown keys are rejected.
    """
    values = await SettingsService(db).update_settings(body, current_user.id)
    await audit_service.log_admin_action(
        admin_id=current_user.id,
        action="UPDATE_SETTINGS",
        target_type="settings",
        details={key: values[key] for key in body},
        ip_address=get_client_ip(request),
    )
    return {"message": "Settings updated", "settings": values}
