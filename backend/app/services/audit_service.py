"""
Audit trail writers.

Both writers are best-effort: each opens its own session after the caller's
work is committed, and a failure is logged without reaching the request.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi.encoders import jsonable_encoder

from app.core.database import get_db_session
from app.models.audit import AdminLog, AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Writes entity audit entries and administrator action entries."""

    @staticmethod
    async def log_audit(
        action: str,
        entity_type: str,
        entity_id: Optional[Any] = None,
        user_id: Optional[UUID] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        try:
            async with get_db_session() as session:
                session.add(AuditLog(
                    user_id=user_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=str(entity_id) if entity_id is not None else None,
                    old_values=jsonable_encoder(old_values) if old_values else None,
                    new_values=jsonable_encoder(new_values) if new_values else None,
                    ip_address=ip_address,
                    user_agent=(user_agent or "")[:500] or None,
                ))
                await session.commit()
        except Exception as e:
            logger.error(f"Failed to write audit log {action} on {entity_type}: {e}")

    @staticmethod
    async def log_admin_action(
        admin_id: Optional[UUID],
        action: str,
        target_type: str,
        target_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        try:
            async with get_db_session() as session:
                session.add(AdminLog(
                    admin_id=admin_id,
                    action=action,
                    target_type=target_type,
                    target_id=str(target_id) if target_id is not None else None,
                    details=jsonable_encoder(details) if details else None,
                    ip_address=ip_address,
                ))
                await session.commit()
        except Exception as e:
            logger.error(f"Failed to write admin log {action} on {target_type}: {e}")


audit_service = AuditService()
