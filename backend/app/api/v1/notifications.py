from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.database import get_db, pagination_meta
from app.core.permissions import Principal
from app.models.notification import NotificationPriority, NotificationType
from app.schemas.notification import (
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    NotificationResponse,
    UnreadCount,
)
from app.services.notification_service import NotificationService

router = APIRouter()


def _notification(notification) -> dict:
    return NotificationResponse.model_validate(notification).model_dump()


@router.get("/")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_read: Optional[bool] = Query(None),
    notification_type: Optional[NotificationType] = Query(None, alias="type"),
    priority: Optional[NotificationPriority] = Query(None),
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    sort: Literal["newest", "oldest", "priority"] = Query("newest"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the caller's notifications with filters and unread counts.
    """
    service = NotificationService(db)
    notifications, total = await service.list_notifications(
        current_user.id,
        page=page,
        limit=limit,
        is_read=is_read,
        notification_type=notification_type,
        priority=priority,
        from_date=from_date,
        to_date=to_date,
        sort=sort,
    )
    return {
        "notifications": [_notification(n) for n in notifications],
        "pagination": pagination_meta(page, limit, total),
        "unread_count": await service.unread_count(current_user.id),
    }


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService(db).unread_count(current_user.id)


@router.get("/preferences", response_model=NotificationPreferencesResponse)
async def get_preferences(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get notification preferences, creating the defaults on first access.
    """
    prefs = await NotificationService(db).get_preferences(current_user.id)
    return prefs.to_dict()


@router.put("/preferences", response_model=NotificationPreferencesResponse)
async def update_preferences(
    body: NotificationPreferencesUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    prefs = await NotificationService(db).update_preferences(
        current_user.id, body.model_dump(exclude_unset=True)
    )
    return prefs.to_dict()


@router.put("/read-all")
async def mark_all_read(
    notification_type: Optional[NotificationType] = Query(None, alias="type"),
    priority: Optional[NotificationPriority] = Query(None),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationService(db).mark_all_read(current_user.id, notification_type, priority)
    return {"message": "Notifications marked as read", "updated": updated}


@router.delete("/")
async def delete_notifications(
    only_read: bool = Query(True),
    older_than: Optional[int] = Query(None, ge=0, description="Only notifications older than this many days"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Bulk delete the caller's notifications.
    """
    deleted = await NotificationService(db).delete_notifications(current_user.id, only_read, older_than)
    return {"message": "Notifications deleted", "deleted": deleted}


@router.get("/{notification_id}")
async def get_notification(
    notification_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).get_notification(current_user.id, notification_id)
    return {"notification": _notification(notification)}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_read(current_user.id, notification_id)
    return {"message": "Notification marked as read", "notification": _notification(notification)}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).delete_notification(current_user.id, notification_id)
    return {"message": "Notification deleted"}
