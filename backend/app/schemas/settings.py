"""
Schemas for system settings and email template administration.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def _placeholder_list(value: Any) -> Optional[List[str]]:
    """Accept a list or a comma separated string of placeholder names."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        raise ValueError("placeholders must be a list or a comma separated string")
    return [str(v).strip() for v in value if isinstance(v, str) and v.strip()]


class SettingsResponse(BaseModel):
    settings: Dict[str, str]


class EmailTemplateBody(BaseModel):
    subject: str = Field(..., max_length=255)
    body_text: str
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    placeholders: Optional[List[str]] = None

    @field_validator("placeholders", mode="before")
    @classmethod
    def parse_placeholders(cls, v):
        return _placeholder_list(v)

    @field_validator("subject", "body_text")
    @classmethod
    def not_blank(cls, v, info):
        if not v.strip():
            raise ValueError(f"{info.field_name} is required")
        return v.strip() if info.field_name == "subject" else v


class EmailTemplateCreate(EmailTemplateBody):
    key: str = Field(..., max_length=64)
    title: str = Field(..., min_length=1, max_length=200)

    @field_validator("key", "title", mode="before")
    @classmethod
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class EmailTemplateResponse(BaseModel):
    key: str
    title: str
    description: Optional[str] = None
    subject: str
    body_text: str
    body_html: str
    placeholders: List[str] = Field(default_factory=list)
    is_default: bool
    updated_at: Optional[datetime] = None
