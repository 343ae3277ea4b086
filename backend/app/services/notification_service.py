"""
Notification service for the job board.

This service stores in-app notifications, applies each user's notification
preferences, and sends the matching email template when the user wants email.

Features:
- In-app notifications with priority and read tracking
- Per-user channel and category preferences
- Email delivery through the built-in templates
- Listing, counting and bulk read/delete for the notifications API
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import count_query_results, get_db_session, paginate_query, utcnow
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.models.notification import (
    PRIORITY_RANK,
    Notification,
    NotificationPreference,
    NotificationPriority,
    NotificationType,
)
from app.models.user import User
from app.services.email_service import email_service

logger = logging.getLogger(__name__)

# Semantic types callers may use; stored under a persisted type
TYPE_ALIASES = {
    "application_success": NotificationType.APPLICATION_STATUS_CHANGED,
    "application_update": NotificationType.APPLICATION_STATUS_CHANGED,
}

# Preference switch that gates each stored type
CATEGORY_PREFERENCE = {
    NotificationType.APPLICATION_RECEIVED: "application_updates",
    NotificationType.APPLICATION_STATUS_CHANGED: "application_updates",
    NotificationType.JOB_ALERT: "job_alerts",
    NotificationType.MESSAGE: "message",
}


def resolve_type(notification_type: str) -> NotificationType:
    if notification_type in TYPE_ALIASES:
        return TYPE_ALIASES[notification_type]
    return NotificationType(notification_type)


def email_template_for(notification_type: str, data: Dict[str, Any]) -> Optional[str]:
    """Pick the email template for a semantic notification type, if any."""
    status = str(data.get("status", "")).lower()
    if notification_type == "job_alert":
        return "job_alert"
    if notification_type == "application_success":
        return "application_success"
    if notification_type in ("application_update", "application_status_changed"):
        if "interview" in status:
            return "interview_invitation"
        if "reject" in status:
            return "application_rejected"
        return "application_success"
    return None


class NotificationService:
    """Service for in-app notifications and notification preferences."""

    def __init__(self, db: Optional[AsyncSession] = None):
        self.db = db

    # Internal helper used by other services

    @staticmethod
    async def create_notification(
        user_id: UUID,
        notification_type: str,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        priority: str = "normal",
        action_url: Optional[str] = None,
    ) -> Optional[UUID]:
        """
        Store a notification and send its email, honoring the user's preferences.

        Runs in its own session and never raises; failures are logged.

        Returns:
            The new notification id, or None when skipped or failed
        """
        data = dict(data or {})
        try:
            stored_type = resolve_type(notification_type)
            async with get_db_session() as session:
                prefs = (await session.execute(
                    select(NotificationPreference).where(NotificationPreference.user_id == user_id)
                )).scalar_one_or_none()

                if prefs is not None:
                    category = CATEGORY_PREFERENCE.get(stored_type)
                    if not prefs.in_app or (category and not getattr(prefs, category)):
                        logger.debug(f"Notification '{notification_type}' skipped for {user_id} by preference")
                        return None

                if action_url:
                    data.setdefault("action_url", action_url)

                notification = Notification(
                    user_id=user_id,
                    type=stored_type,
                    title=title,
                    message=message,
                    data=data,
                    priority=NotificationPriority(priority),
                )
                session.add(notification)
                await session.commit()
                notification_id = notification.id

                send_email = prefs.email if prefs is not None else True
                user = await session.get(User, user_id) if send_email else None
        except Exception as e:
            logger.error(f"Failed to create notification '{notification_type}' for {user_id}: {e}")
            return None

        template_key = email_template_for(notification_type, data)
        if user is not None and user.email and template_key:
            await NotificationService._send_notification_email(user, template_key, title, data, action_url)

        return notification_id

    @staticmethod
    async def _send_notification_email(
        user: User,
        template_key: str,
        title: str,
        data: Dict[str, Any],
        action_url: Optional[str],
    ) -> None:
        web = (settings.web_origin or "").rstrip("/")
        link = action_url or (f"{web}/app/notifications" if web else "")
        if link.startswith("/") and web:
            link = f"{web}{link}"
        try:
            await email_service.send_templated_email(
                to=user.email,
                template_key=template_key,
                data={
                    "user_full_name": user.full_name or "User",
                    "company_name": data.get("company_name") or data.get("company") or settings.app_name,
                    "job_title": data.get("job_title") or title,
                    "job_link": link,
                    "interview_date": data.get("interview_date", ""),
                    "interview_time": data.get("interview_time", ""),
                    "interview_location": data.get("interview_location", ""),
                    "unsubscribe_link": f"{web}/app/notifications" if web else "",
                },
            )
        except Exception as e:
            logger.warning(f"Notification email '{template_key}' to {user.email} not sent: {e}")

    # Queries for the notifications API

    async def list_notifications(
        self,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
        is_read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
        priority: Optional[NotificationPriority] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        sort: str = "newest",
    ) -> Tuple[List[Notification], int]:
        query = select(Notification).where(Notification.user_id == user_id)
        if is_read is not None:
            query = query.where(Notification.is_read.is_(is_read))
        if notification_type is not None:
            query = query.where(Notification.type == notification_type)
        if priority is not None:
            query = query.where(Notification.priority == priority)
        if from_date is not None:
            query = query.where(Notification.created_at >= from_date)
        if to_date is not None:
            query = query.where(Notification.created_at <= to_date)

        total = await count_query_results(self.db, query)

        if sort == "oldest":
            query = query.order_by(Notification.created_at.asc())
        elif sort == "priority":
            rank = case(
                {priority.value: value for priority, value in PRIORITY_RANK.items()},
                value=Notification.priority,
                else_=0,
            )
            query = query.order_by(rank.desc(), Notification.created_at.desc())
        else:
            query = query.order_by(Notification.created_at.desc())

        result = await self.db.execute(paginate_query(query, page, limit))
        return list(result.scalars()), total

    async def unread_count(self, user_id: UUID) -> Dict[str, int]:
        result = await self.db.execute(
            select(Notification.priority, func.count())
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .group_by(Notification.priority)
        )
        counts = {priority.value: 0 for priority in NotificationPriority}
        for priority, count in result:
            counts[NotificationPriority(priority).value] = count
        return {"total": sum(counts.values()), **counts}

    async def get_notification(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        if notification.user_id != user_id:
            raise ForbiddenError("You do not have permission to view this notification")
        return notification

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self._owned(user_id, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utcnow()
            await self.db.commit()
            await self.db.refresh(notification)
        return notification

    async def mark_all_read(
        self,
        user_id: UUID,
        notification_type: Optional[NotificationType] = None,
        priority: Optional[NotificationPriority] = None,
    ) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=utcnow())
        )
        if notification_type is not None:
            stmt = stmt.where(Notification.type == notification_type)
        if priority is not None:
            stmt = stmt.where(Notification.priority == priority)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount or 0

    async def delete_notification(self, user_id: UUID, notification_id: UUID) -> None:
        notification = await self._owned(user_id, notification_id)
        await self.db.delete(notification)
        await self.db.commit()

    async def delete_notifications(self, user_id: UUID, only_read: bool = True, older_than_days: Optional[int] = None) -> int:
        stmt = delete(Notification).where(Notification.user_id == user_id)
        if only_read:
            stmt = stmt.where(Notification.is_read.is_(True))
        if older_than_days is not None:
            stmt = stmt.where(Notification.created_at < utcnow() - timedelta(days=older_than_days))
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount or 0

    # Preferences

    async def get_preferences(self, user_id: UUID) -> NotificationPreference:
        prefs = (await self.db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )).scalar_one_or_none()
        if prefs is None:
            prefs = NotificationPreference(user_id=user_id)
            self.db.add(prefs)
            await self.db.commit()
            await self.db.refresh(prefs)
        return prefs

    async def update_preferences(self, user_id: UUID, changes: Dict[str, bool]) -> NotificationPreference:
        changes = {k: v for k, v in changes.items() if k in NotificationPreference.PREFERENCE_FIELDS and v is not None}
        if not changes:
            raise BadRequestError("No preferences to update")
        prefs = await self.get_preferences(user_id)
        for field, value in changes.items():
            setattr(prefs, field, value)
        await self.db.commit()
        await self.db.refresh(prefs)
        return prefs

    async def _owned(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = (await self.db.execute(
            select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
        )).scalar_one_or_none()
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification
