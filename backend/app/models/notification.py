"""
In-app notifications and per-user notification preferences.
"""

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text, Uuid

from app.core.database import utcnow
from app.models.base import Base, TimestampMixin, enum_type, uuid_pk


class NotificationType(str, enum.Enum):
    APPLICATION_RECEIVED = "application_received"
    APPLICATION_STATUS_CHANGED = "application_status_changed"
    JOB_ALERT = "job_alert"
    MESSAGE = "message"
    SYSTEM = "system"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


# Sort rank used by ``sort=priority``
PRIORITY_RANK = {
    NotificationPriority.URGENT: 4,
    NotificationPriority.HIGH: 3,
    NotificationPriority.NORMAL: 2,
    NotificationPriority.LOW: 1,
}


class Notification(Base):
    __tablename__ = "notifications"

    id = uuid_pk()
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(enum_type(NotificationType, 40), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    priority = Column(enum_type(NotificationPriority), default=NotificationPriority.NORMAL, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification(id={self.id}, type='{self.type}', user_id={self.user_id})>"


class NotificationPreference(TimestampMixin, Base):
    """Channel and category switches; every switch except marketing defaults on."""
    __tablename__ = "notification_preferences"

    id = uuid_pk()
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    email = Column(Boolean, default=True, nullable=False)
    push = Column(Boolean, default=True, nullable=False)
    in_app = Column(Boolean, default=True, nullable=False)
    application_updates = Column(Boolean, default=True, nullable=False)
    job_alerts = Column(Boolean, default=True, nullable=False)
    message = Column(Boolean, default=True, nullable=False)
    marketing = Column(Boolean, default=False, nullable=False)

    PREFERENCE_FIELDS = (
        "email",
        "push",
        "in_app",
        "application_updates",
        "job_alerts",
        "message",
        "marketing",
    )

    def to_dict(self) -> dict:
        return {field: getattr(self, field) for field in self.PREFERENCE_FIELDS}
