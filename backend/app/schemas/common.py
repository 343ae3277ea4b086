"""
Shared schema building blocks: camelCase models, pagination and password rules.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

PASSWORD_MIN_LENGTH = 8
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&#])")
PASSWORD_RULES_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one number and one special character"
)


def validate_password_strength(value: str) -> str:
    """Shared rule for registration and password reset."""
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not PASSWORD_PATTERN.search(value):
        raise ValueError(PASSWORD_RULES_MESSAGE)
    return value


def not_null(*fields: str):
    """
    Validator for partial updates: a key may be left out, but an explicit
    null is rejected for columns that cannot hold one.
    """

    def _reject_null(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    return field_validator(*fields, mode="before")(_reject_null)


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys while keeping snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class MessageResponse(BaseModel):
    message: str


class StatusMessage(BaseModel):
    status: str = "success"
    message: Optional[str] = None


class PageParams(BaseModel):
    page: int = Field(1, ge=1, description="Page number (1-based)")
    limit: int = Field(20, ge=1, le=100, description="Items per page")
