"""
API Package for the job board backend

This package contains all REST API endpoints and route handlers.

API Structure:
- deps.py: authentication and authorization dependencies
- v1/: Version 1 API endpoints
  - auth.py: registration, activation, login and two-factor verification
  - users.py: the caller's account and user search
  - companies.py, jobs.py, applications.py: the hiring flow
  - job_seeker.py: job seeker profile sections
  - documents.py: uploads
  - notifications.py: in-app notifications and preferences
  - admin.py, rbac.py: administration, roles and permissions

Usage:
    from app.api import api_router
    from app.api.deps import get_current_user
"""

from fastapi import APIRouter

from app.api.v1 import api_router as v1_router
from app.core.config import settings

# Main API router that includes all versions
api_router = APIRouter()

api_router.include_router(v1_router, prefix="/v1")

API_VERSION = settings.app_version
API_TITLE = f"{settings.app_name} API"
API_DESCRIPTION = """
## Job board and HR management API

### Accounts
- Registration with email activation
- Login with an emailed one-time code on every sign-in
- Stateless bearer tokens

### Hiring
- Companies, job postings and applications
- Job seeker profiles and document uploads
- In-app and email notifications

### Administration
- User moderation, featured jobs and statistics
- Roles, permissions and an admin action log

### Documentation
- Interactive API documentation available at `/docs`
- ReDoc documentation available at `/redoc`
"""

# Error response schemas
ERROR_RESPONSES = {
    400: {"description": "Bad Request - Invalid input parameters"},
    401: {"description": "Unauthorized - Authentication required"},
    403: {"description": "Forbidden - Insufficient permissions"},
    404: {"description": "Not Found - Resource does not exist"},
    409: {"description": "Conflict - Resource already exists"},
    429: {"description": "Too Many Requests - Rate limit exceeded"},
    500: {"description": "Internal Server Error - Server malfunction"},
}

__all__ = [
    "api_router",
    "API_VERSION",
    "API_TITLE",
    "API_DESCRIPTION",
    "ERROR_RESPONSES"
]
