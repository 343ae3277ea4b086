"""
Services package for the job board.

Business logic lives here; routers stay thin and call into these classes.
Most services take the request's ``AsyncSession``:

    from app.services import JobService
    jobs, total = await JobService(db).list_jobs(viewer)

Best-effort side effects (audit entries, notifications, email) open their own
sessions and never fail the calling request.
"""

import logging

from app.core.database import get_db_session
from app.utils.file_handling import ensure_upload_dirs

from .admin_service import AdminService
from .application_service import ApplicationService
from .audit_service import AuditService, audit_service
from .auth_service import AuthService
from .company_service import CompanyService
from .document_service import DocumentService
from .email_service import EmailService, email_service
from .job_service import JobService
from .notification_service import NotificationService
from .profile_service import ProfileService
from .rbac_service import RBACService
from .settings_service import EmailTemplateService, SettingsService
from .two_factor import TwoFactorChallengeStore, challenge_store

logger = logging.getLogger(__name__)


async def startup_services() -> None:
    """Seed default roles and permissions and prepare the upload directory."""
    async with get_db_session() as session:
        await RBACService(session).seed_defaults()
    ensure_upload_dirs()
    logger.info("Services initialized")


async def shutdown_services() -> None:
    # Pending two-factor challenges do not survive a restart
    challenge_store.clear()
    logger.info("Services stopped")


__all__ = [
    "AdminService",
    "ApplicationService",
    "AuditService",
    "audit_service",
    "AuthService",
    "CompanyService",
    "DocumentService",
    "EmailService",
    "email_service",
    "JobService",
    "NotificationService",
    "ProfileService",
    "RBACService",
    "SettingsService",
    "EmailTemplateService",
    "TwoFactorChallengeStore",
    "challenge_store",
    "startup_services",
    "shutdown_services",
]
