"""
Pydantic schemas package for the job board backend.

Schemas are organized by domain:
- auth: registration, login, two-factor and password reset
- user: account views and search results
- company, job, application: the hiring flow
- profile: job seeker profile sections
- document, notification: uploads and notifications
- admin: user moderation, roles and permissions
- settings: system settings and email templates
- common: shared base models, pagination and password rules
"""

from .common import CamelModel, MessageResponse, PaginationMeta, validate_password_strength
from .auth import (
    AuthUser,
    EmailAvailableResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    TwoFactorChallengeResponse,
    TwoFactorRequiredResponse,
    TwoFactorVerifyRequest,
)
from .user import UserMe, UserMeResponse, UserSummary
from .company import (
    CompanyCreate,
    CompanyMemberAdd,
    CompanyMemberResponse,
    CompanyResponse,
    CompanyUpdate,
)
from .job import (
    ApplicationStats,
    JobCreate,
    JobDeleteResponse,
    JobDetailResponse,
    JobListResponse,
    JobResponse,
    JobUpdate,
)
from .application import ApplicationCreate, ApplicationResponse, ApplicationStatusUpdate
from .profile import (
    AddressIn,
    EducationIn,
    ExperienceIn,
    PersonalDetailsUpdate,
    ProfileUpdate,
    ReferenceIn,
)
from .document import DocumentResponse, DocumentUpdate, PrimaryDocumentRequest
from .notification import (
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    NotificationResponse,
    UnreadCount,
)
from .admin import (
    BlockUserRequest,
    FeatureJobRequest,
    PermissionCreate,
    RoleCreate,
    RolePermissionsUpdate,
    RoleUpdate,
    UserPermissionGrant,
    UserRolesUpdate,
)
from .settings import EmailTemplateBody, EmailTemplateCreate, EmailTemplateResponse, SettingsResponse

__all__ = [
    "CamelModel",
    "MessageResponse",
    "PaginationMeta",
    "validate_password_strength",
    "AuthUser",
    "EmailAvailableResponse",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "LoginRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "TokenResponse",
    "TwoFactorChallengeResponse",
    "TwoFactorRequiredResponse",
    "TwoFactorVerifyRequest",
    "UserMe",
    "UserMeResponse",
    "UserSummary",
    "CompanyCreate",
    "CompanyMemberAdd",
    "CompanyMemberResponse",
    "CompanyResponse",
    "CompanyUpdate",
    "ApplicationStats",
    "JobCreate",
    "JobDeleteResponse",
    "JobDetailResponse",
    "JobListResponse",
    "JobResponse",
    "JobUpdate",
    "ApplicationCreate",
    "ApplicationResponse",
    "ApplicationStatusUpdate",
    "AddressIn",
    "EducationIn",
    "ExperienceIn",
    "PersonalDetailsUpdate",
    "ProfileUpdate",
    "ReferenceIn",
    "DocumentResponse",
    "DocumentUpdate",
    "PrimaryDocumentRequest",
    "NotificationPreferencesResponse",
    "NotificationPreferencesUpdate",
    "NotificationResponse",
    "UnreadCount",
    "BlockUserRequest",
    "FeatureJobRequest",
    "PermissionCreate",
    "RoleCreate",
    "RolePermissionsUpdate",
    "RoleUpdate",
    "UserPermissionGrant",
    "UserRolesUpdate",
    "EmailTemplateBody",
    "EmailTemplateCreate",
    "EmailTemplateResponse",
    "SettingsResponse",
]
