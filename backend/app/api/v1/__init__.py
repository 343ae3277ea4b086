"""
API v1 router configuration for the job board.

This module sets up all the API endpoints and their routing configuration.
"""

from fastapi import APIRouter

from app.api.v1 import (
    admin,
    applications,
    auth,
    companies,
    documents,
    email_templates,
    job_seeker,
    jobs,
    notifications,
    rbac,
    settings as system_settings,
    users,
)
from app.core.config import settings

# Create the main API v1 router
api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"],
    responses={
        400: {"description": "Validation Error"},
        401: {"description": "Unauthorized"},
    }
)

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
    }
)

api_router.include_router(
    companies.router,
    prefix="/companies",
    tags=["companies"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Company not found"},
    }
)

api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["jobs"],
    responses={
        403: {"description": "Forbidden"},
        404: {"description": "Job not found"},
    }
)

api_router.include_router(
    applications.router,
    prefix="/applications",
    tags=["applications"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Application not found"},
    }
)

# The profile router answers on both prefixes
for prefix in ("/job-seeker", "/profile"):
    api_router.include_router(
        job_seeker.router,
        prefix=prefix,
        tags=["job-seeker"],
        responses={
            401: {"description": "Unauthorized"},
            404: {"description": "Record not found"},
        }
    )

api_router.include_router(
    documents.router,
    prefix="/documents",
    tags=["documents"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Document not found"},
    }
)

api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["notifications"],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Notification not found"},
    }
)

api_router.include_router(
    rbac.router,
    prefix="/admin/rbac",
    tags=["roles and permissions"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
    }
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["admin"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
    }
)


api_router.include_router(
    system_settings.router,
    prefix="/settings",
    tags=["settings"],
    responses={
        400: {"description": "Validation Error"},
        403: {"description": "Forbidden"},
    }
)

api_router.include_router(
    email_templates.router,
    prefix="/email-templates",
    tags=["email templates"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Email template not found"},
    }
)


@api_router.get("/", tags=["root"])
async def api_root():
    """
    API root endpoint providing version and endpoint families.
    """
    return {
        "message": f"{settings.app_name} API v1",
        "version": settings.app_version,
        "status": "active",
        "endpoints": {
            "authentication": "/api/v1/auth",
            "users": "/api/v1/users",
            "companies": "/api/v1/companies",
            "jobs": "/api/v1/jobs",
            "applications": "/api/v1/applications",
            "job_seeker": "/api/v1/job-seeker",
            "documents": "/api/v1/documents",
            "notifications": "/api/v1/notifications",
            "admin": "/api/v1/admin",
            "rbac": "/api/v1/admin/rbac",
            "settings": "/api/v1/settings",
            "email_templates": "/api/v1/email-templates",
        },
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        }
    }


__all__ = ["api_router"]
