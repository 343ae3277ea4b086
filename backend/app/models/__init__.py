"""
SQLAlchemy models package for the job board backend.

Importing this package registers every table on ``Base.metadata``.

Models included:
- User: credentials, activation, blocking and password reset state
- Role, PermissionRecord and the grant tables: role based access control
- JobSeekerProfile and friends: the job seeker's profile sections
- Company, CompanyUser: companies and their members
- Job, Application: postings and applications to them
- Document: uploaded files
- Notification, NotificationPreference: in-app notifications
- AuditLog, AdminLog: audit trails
- SystemSetting, EmailTemplate: settings and email templates editable at runtime
"""

from app.models.base import Base
from app.models.user import User
from app.models.rbac import PermissionRecord, Role, RolePermission, UserPermission, UserRole
from app.models.profile import Address, Education, Experience, JobSeekerProfile, PersonalDetails, Reference
from app.models.company import Company, CompanyUser
from app.models.job import EmploymentType, ExperienceLevel, Job, JobStatus
from app.models.application import Application, ApplicationStatus
from app.models.document import Document
from app.models.notification import (
    Notification,
    NotificationPreference,
    NotificationPriority,
    NotificationType,
)
from app.models.audit import AdminLog, AuditLog
from app.models.settings import EmailTemplate, SystemSetting

ALL_MODELS = [
    User,
    Role,
    PermissionRecord,
    RolePermission,
    UserRole,
    UserPermission,
    JobSeekerProfile,
    PersonalDetails,
    Address,
    Education,
    Experience,
    Reference,
    Company,
    CompanyUser,
    Job,
    Application,
    Document,
    Notification,
    NotificationPreference,
    AuditLog,
    AdminLog,
    SystemSetting,
    EmailTemplate,
]


def list_tables() -> list:
    """List all database table names."""
    return [model.__tablename__ for model in ALL_MODELS]


__all__ = [
    "Base",
    "User",
    "Role",
    "PermissionRecord",
    "RolePermission",
    "UserRole",
    "UserPermission",
    "JobSeekerProfile",
    "PersonalDetails",
    "Address",
    "Education",
    "Experience",
    "Reference",
    "Company",
    "CompanyUser",
    "Job",
    "JobStatus",
    "EmploymentType",
    "ExperienceLevel",
    "Application",
    "ApplicationStatus",
    "Document",
    "Notification",
    "NotificationPreference",
    "NotificationPriority",
    "NotificationType",
    "AuditLog",
    "AdminLog",
    "SystemSetting",
    "EmailTemplate",
    "ALL_MODELS",
    "list_tables",
]
