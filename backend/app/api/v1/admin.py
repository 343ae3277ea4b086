from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_roles
from app.core.database import get_db, pagination_meta
from app.core.permissions import Principal, RoleName
from app.core.security import get_client_ip
from app.models.job import JobStatus
from app.schemas.admin import BlockUserRequest, FeatureJobRequest
from app.services.admin_service import AdminService

router = APIRouter()

require_admin = require_roles(RoleName.ADMIN)


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[str] = Query(None),
    status_filter: Optional[Literal["active", "blocked", "inactive"]] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    sort_by: Literal["created_at", "last_login", "email", "name"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    List users with their roles and a platform-wide summary.
    """
    users, total, summary = await AdminService(db).list_users(
        page, limit, role, status_filter, search, sort_by, sort_order
    )
    return {"users": users, "pagination": pagination_meta(page, limit, total), "summary": summary}


@router.get("/users/{user_id}")
async def get_user(
    user_id: UUID,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return {"user": await AdminService(db).get_user(user_id)}


@router.put("/users/{user_id}/block")
async def block_user(
    request: Request,
    user_id: UUID,
    body: BlockUserRequest,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Block or unblock a user. Blocking needs a reason.
    """
    return await AdminService(db).set_blocked(
        user_id, current_user, body.block, body.reason, get_client_ip(request)
    )


@router.get("/jobs")
async def list_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    employer_id: Optional[UUID] = Query(None),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    List jobs in every status.
    """
    jobs, total, summary = await AdminService(db).list_jobs(
        page, limit, status_filter, employer_id, featured, search
    )
    return {"jobs": jobs, "pagination": pagination_meta(page, limit, total), "summary": summary}


@router.delete("/jobs/{job_id}")
async def delete_job(
    request: Request,
    job_id: UUID,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Permanently delete a job and its applications.
    """
    return await AdminService(db).delete_job(job_id, current_user, get_client_ip(request))


@router.post("/jobs/{job_id}/feature")
async def feature_job(
    request: Request,
    job_id: UUID,
    body: FeatureJobRequest,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService(db).set_featured(job_id, current_user, body.featured, get_client_ip(request))


@router.get("/statistics")
async def statistics(
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService(db).statistics()


@router.get("/audit-logs")
async def audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin_id: Optional[UUID] = Query(None),
    action: Optional[str] = Query(None),
    target_type: Optional[str] = Query(None),
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Read the admin action log, newest first.
    """
    logs, total = await AdminService(db).audit_logs(page, limit, admin_id, action, target_type)
    return {"logs": logs, "pagination": pagination_meta(page, limit, total)}
