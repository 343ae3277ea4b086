"""
System settings and email template administration.

Both are stored as overrides: a setting or built-in template without a row
keeps its default, so a fresh database behaves exactly like the built-in
configuration.
"""

import logging
import re
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.models.settings import EmailTemplate, SystemSetting
from app.services.email_service import EMAIL_TEMPLATES, text_to_html

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, str] = {
    "system_name": "HR System",
    "system_logo_url": "",
    "primary_color": "#4f46e5",
    "company_name": "",
    "support_email": "",
}

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
TEMPLATE_KEY_RE = re.compile(r"^[a-z0-9][a-z0-9_-]{2,63}$")


class SettingsService:
    """Key/value system settings with built-in defaults."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_settings(self) -> Dict[str, str]:
        result = await self.db.execute(select(SystemSetting))
        values = dict(DEFAULT_SETTINGS)
        values.update({row.key: row.value for row in result.scalars()})
        return values

    async def update_settings(self, changes: Dict[str, str], user_id: Optional[UUID] = None) -> Dict[str, str]:
        if not changes:
            raise BadRequestError("No settings to update")
        unknown = sorted(set(changes) - set(DEFAULT_SETTINGS))
        if unknown:
            raise BadRequestError(f"Unknown settings: {', '.join(unknown)}")

        changes = {key: value.strip() for key, value in changes.items()}
        if "system_name" in changes and not changes["system_name"]:
            raise BadRequestError("system_name cannot be empty")
        if changes.get("primary_color") and not _COLOR_RE.match(changes["primary_color"]):
            raise BadRequestError("primary_color must be a hex colour such as #4f46e5")

        existing = {
            row.key: row
            for row in (await self.db.execute(
                select(SystemSetting).where(SystemSetting.key.in_(list(changes)))
            )).scalars()
        }
        for key, value in changes.items():
            row = existing.get(key)
            if row is None:
                self.db.add(SystemSetting(key=key, value=value, updated_by=user_id))
            else:
                row.value = value
                row.updated_by = user_id
        await self.db.commit()
        logger.info(f"System settings updated by {user_id}: {', '.join(sorted(changes))}")
        return await self.get_settings()


def _builtin_view(key: str) -> Dict[str, Any]:
    base = EMAIL_TEMPLATES[key]
    return {
        "key": key,
        "title": base["title"],
        "description": base.get("description", ""),
        "subject": base["subject"],
        "body_text": base["body_text"],
        "placeholders": list(base.get("placeholders", [])),
        "is_default": True,
        "updated_at": None,
    }


def _apply(view: Dict[str, Any], row: EmailTemplate) -> Dict[str, Any]:
    view.update(
        title=row.title,
        description=row.description if row.description is not None else view.get("description", ""),
        subject=row.subject,
        body_text=row.body_text,
        updated_at=row.updated_at,
    )
    if row.placeholders is not None:
        view["placeholders"] = list(row.placeholders)
    return view


def _with_html(view: Dict[str, Any]) -> Dict[str, Any]:
    view["body_html"] = text_to_html(view["body_text"])
    return view


class EmailTemplateService:
    """Lists, creates and edits email templates on top of the built-in set."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _stored(self, key: str) -> Optional[EmailTemplate]:
        result = await self.db.execute(select(EmailTemplate).where(EmailTemplate.key == key))
        return result.scalar_one_or_none()

    async def list_templates(self) -> List[Dict[str, Any]]:
        """Built-in templates (with edits applied) first, then custom ones by key."""
        rows = {row.key: row for row in (await self.db.execute(select(EmailTemplate))).scalars()}
        templates = []
        for key in EMAIL_TEMPLATES:
            view = _builtin_view(key)
            if key in rows:
                _apply(view, rows.pop(key))
            templates.append(_with_html(view))
        for key in sorted(rows):
            view = {"key": key, "description": "", "placeholders": [], "is_default": False}
            templates.append(_with_html(_apply(view, rows[key])))
        return templates

    async def create_template(self, values: Dict[str, Any], user_id: Optional[UUID] = None) -> Dict[str, Any]:
        key = values["key"]
        if not TEMPLATE_KEY_RE.match(key):
            raise BadRequestError("Invalid key format")
        if key in EMAIL_TEMPLATES or await self._stored(key) is not None:
            raise ConflictError("A template with this key already exists")

        row = EmailTemplate(
            key=key,
            title=values["title"],
            description=values.get("description") or "",
            subject=values["subject"],
            body_text=values["body_text"],
            placeholders=values.get("placeholders") or [],
            updated_by=user_id,
        )
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        logger.info(f"Email template '{key}' created by {user_id}")
        view = {"key": key, "description": "", "placeholders": [], "is_default": False}
        return _with_html(_apply(view, row))

    async def update_template(
        self,
        key: str,
        values: Dict[str, Any],
        user_id: Optional[UUID] = None,
    ) -> Dict[str, Any]:
        """
        Replace the subject and body of a template.

        Editing a built-in template stores an override; title, description
        and placeholders keep their current values unless given.
        """
        if not TEMPLATE_KEY_RE.match(key):
            raise BadRequestError("Invalid template key")

        row = await self._stored(key)
        if row is None and key not in EMAIL_TEMPLATES:
            raise NotFoundError("Email template not found")

        if row is None:
            base = _builtin_view(key)
            row = EmailTemplate(
                key=key,
                title=base["title"],
                description=base["description"],
                placeholders=base["placeholders"],
            )
            self.db.add(row)

        row.subject = values["subject"]
        row.body_text = values["body_text"]
        row.updated_by = user_id
        if values.get("title"):
            row.title = values["title"]
        if values.get("description") is not None:
            row.description = values["description"]
        if values.get("placeholders") is not None:
            row.placeholders = values["placeholders"]

        await self.db.commit()
        await self.db.refresh(row)
        logger.info(f"Email template '{key}' updated by {user_id}")

        view = _builtin_view(key) if key in EMAIL_TEMPLATES else {
            "key": key, "description": "", "placeholders": [], "is_default": False,
        }
        return _with_html(_apply(view, row))
