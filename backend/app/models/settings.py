"""
Runtime-editable configuration: system settings and email template overrides.
"""

from sqlalchemy import JSON, Column, ForeignKey, String, Text, Uuid

from app.models.base import Base, TimestampMixin, uuid_pk


class SystemSetting(TimestampMixin, Base):
    """One key/value pair; keys without a row fall back to their defaults."""
    __tablename__ = "system_settings"

    id = uuid_pk()
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=False, default="")
    updated_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class EmailTemplate(TimestampMixin, Base):
    """
    An edited copy of a built-in template, or a custom template.

    Rows whose key matches a built-in template replace its subject and body
    when that email is sent.
    """
    __tablename__ = "email_templates"

    id = uuid_pk()
    key = Column(String(64), unique=True, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String(255), nullable=False)
    body_text = Column(Text, nullable=False)
    placeholders = Column(JSON, nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    def __repr__(self):
        return f"<EmailTemplate(key='{self.key}')>"
