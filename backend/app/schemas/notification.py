"""
Notification schemas.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.notification import NotificationPriority, NotificationType


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    priority: NotificationPriority
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class UnreadCount(BaseModel):
    total: int = 0
    low: int = 0
    normal: int = 0
    high: int = 0
    urgent: int = 0


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; unset switches keep their current value."""

    email: Optional[bool] = None
    push: Optional[bool] = None
    in_app: Optional[bool] = None
    application_updates: Optional[bool] = None
    job_alerts: Optional[bool] = None
    message: Optional[bool] = None
    marketing: Optional[bool] = None


class NotificationPreferencesResponse(BaseModel):
    email: bool
    push: bool
    in_app: bool
    application_updates: bool
    job_alerts: bool
    message: bool
    marketing: bool
