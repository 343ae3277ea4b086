from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_permission, require_roles
from app.core.database import get_db, pagination_meta
from app.core.permissions import Permission, Principal, RoleName
from app.core.security import get_client_ip
from app.models.application import ApplicationStatus
from app.schemas.application import ApplicationCreate, ApplicationStatusUpdate
from app.services.application_service import ApplicationService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    request: Request,
    body: ApplicationCreate,
    current_user: Principal = Depends(require_permission(Permission.APPLY_JOB)),
    db: AsyncSession = Depends(get_db),
):
    """
    Apply to an active job. The employer and user managers are notified.
    """
    return await ApplicationService(db).apply(
        current_user,
        body.job_id,
        cover_letter=body.cover_letter,
        resume_url=body.resume_url,
        ip_address=get_client_ip(request),
    )


@router.get("/")
async def list_my_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    sort: Literal["newest", "oldest"] = Query("newest"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the caller's own applications.
    """
    applications, total = await ApplicationService(db).list_my_applications(
        current_user.id, status_filter, sort, page, limit
    )
    return {"applications": applications, "pagination": pagination_meta(page, limit, total)}


@router.get("/employer/jobs")
async def list_employer_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    job_id: Optional[UUID] = Query(None),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    current_user: Principal = Depends(require_roles(RoleName.EMPLOYER, RoleName.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Get applications received across the caller's job postings.
    """
    applications, total = await ApplicationService(db).list_employer_applications(
        current_user, job_id, status_filter, page, limit
    )
    return {"applications": applications, "pagination": pagination_meta(page, limit, total)}


@router.get("/{application_id}")
async def get_application(
    application_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ApplicationService(db).get_application(application_id, current_user)


@router.put("/{application_id}/status")
async def update_application_status(
    request: Request,
    application_id: UUID,
    body: ApplicationStatusUpdate,
    current_user: Principal = Depends(require_permission(Permission.UPDATE_APPLICATION_STATUS)),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a review decision and notify the applicant.
    """
    return await ApplicationService(db).update_status(
        application_id, current_user, body.status, body.notes, get_client_ip(request)
    )


@router.delete("/{application_id}")
async def withdraw_application(
    application_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService(db).withdraw(application_id, current_user)
    return {"message": "Application withdrawn successfully", "application": application}
