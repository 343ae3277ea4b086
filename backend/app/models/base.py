"""
Shared column helpers for the SQLAlchemy models.
"""

import enum
import uuid
from typing import Type

from sqlalchemy import Column, DateTime, Enum, Uuid

from app.core.database import Base, utcnow


def enum_type(enum_cls: Type[enum.Enum], length: int = 32) -> Enum:
    """Store enum values (not member names) as portable VARCHAR columns."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        validate_strings=True,
        length=length,
    )


def uuid_pk() -> Column:
    return Column(Uuid, primary_key=True, default=uuid.uuid4)


def as_dict(instance) -> dict:
    """Column name to value mapping, the shape row-style responses use."""
    return {column.name: getattr(instance, column.key) for column in instance.__table__.columns}


class TimestampMixin:
    """created_at / updated_at columns maintained on the Python side."""

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


__all__ = ["Base", "enum_type", "uuid_pk", "as_dict", "TimestampMixin"]
