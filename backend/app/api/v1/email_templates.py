from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_roles
from app.core.database import get_db
from app.core.permissions import Principal, RoleName
from app.core.security import get_client_ip
from app.schemas.settings import EmailTemplateBody, EmailTemplateCreate, EmailTemplateResponse
from app.services.audit_service import audit_service
from app.services.settings_service import EmailTemplateService

router = APIRouter()

require_template_editor = require_roles(RoleName.ADMIN, RoleName.HR_MANAGER)


def _template(data: dict) -> dict:
    return EmailTemplateResponse.model_validate(data).model_dump()


@router.get("/")
async def list_email_templates(
    current_user: Principal = Depends(require_template_editor),
    db: AsyncSession = Depends(get_db),
):
    """
    Built-in templates with any edits applied, followed by custom templates.
    """
    templates = await EmailTemplateService(db).list_templates()
    return {"status": "success", "data": [_template(t) for t in templates]}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_email_template(
    request: Request,
    body: EmailTemplateCreate,
    current_user: Principal = Depends(require_template_editor),
    db: AsyncSession = Depends(get_db),
):
    """
    Add a custom template. Keys are 3-64 characters of lowercase letters,
    digits, ``_`` and ``-``, and may not reuse a built-in key.
    """
    template = await EmailTemplateService(db).create_template(body.model_dump(), current_user.id)
    await audit_service.log_admin_action(
        admin_id=current_user.id,
        action="CREATE_EMAIL_TEMPLATE",
        target_type="email_template",
        target_id=template["key"],
        ip_address=get_client_ip(request),
    )
    return {"status": "success", "data": _template(template)}


@router.put("/{key}")
async def update_email_template(
    request: Request,
    key: str,
    body: EmailTemplateBody,
    current_user: Principal = Depends(require_template_editor),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace a template's subject and body. Editing a built-in template
    changes the emails the platform sends from then on.
    """
    template = await EmailTemplateService(db).update_template(key, body.model_dump(), current_user.id)
    await audit_service.log_admin_action(
        admin_id=current_user.id,
        action="UPDATE_EMAIL_TEMPLATE",
        target_type="email_template",
        target_id=key,
        details={"subject": template["subject"]},
        ip_address=get_client_ip(request),
    )
    return {"status": "success", "data": _template(template)}
