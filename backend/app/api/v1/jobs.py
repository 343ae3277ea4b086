from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user, require_roles
from app.core.database import get_db, pagination_meta
from app.core.permissions import Principal, RoleName
from app.core.security import get_client_ip
from app.models.application import ApplicationStatus
from app.models.job import EmploymentType, ExperienceLevel, JobStatus
from app.schemas.job import JobCreate, JobDeleteResponse, JobDetailResponse, JobListResponse, JobResponse, JobUpdate
from app.services.job_service import JobService

router = APIRouter()


@router.get("/", response_model=JobListResponse)
async def list_jobs(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Jobs per page"),
    search: Optional[str] = Query(None, description="Matches title, description and company"),
    location: Optional[str] = Query(None, description="Filter by location"),
    category: Optional[str] = Query(None, description="Filter by category"),
    employment_type: Optional[EmploymentType] = Query(None, description="Employment type filter"),
    experience_level: Optional[ExperienceLevel] = Query(None, description="Experience level filter"),
    remote: Optional[bool] = Query(None, description="Filter remote jobs"),
    status_filter: Optional[JobStatus] = Query(None, alias="status", description="Owner and admin only"),
    my_jobs: bool = Query(False, description="Only the caller's own postings"),
    current_user: Optional[Principal] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get paginated list of jobs with optional filtering.

    Anonymous callers and job seekers only see active jobs.
    """
    jobs, total = await JobService(db).list_jobs(
        current_user,
        page=page,
        limit=limit,
        search=search,
        location=location,
        category=category,
        employment_type=employment_type,
        experience_level=experience_level,
        remote=remote,
        status=status_filter,
        my_jobs=my_jobs,
    )
    return {"jobs": jobs, "pagination": pagination_meta(page, limit, total)}


@router.get("/employer/dashboard")
async def employer_dashboard(
    current_user: Principal = Depends(require_roles(RoleName.EMPLOYER, RoleName.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Employer dashboard: posting totals, the ten latest applications and a
    per-job application breakdown for the caller's own jobs.
    """
    return await JobService(db).employer_dashboard(current_user.id)


@router.get("/employer/jobs")
async def list_employer_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    current_user: Principal = Depends(require_roles(RoleName.EMPLOYER, RoleName.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    The caller's jobs in any status, each with per-status application counts.
    """
    jobs, total = await JobService(db).list_employer_jobs(current_user.id, status_filter, page, limit)
    return {"jobs": jobs, "pagination": pagination_meta(page, limit, total)}


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job(
    job_id: UUID,
    current_user: Optional[Principal] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get specific job by ID.
    """
    return await JobService(db).get_job_detail(job_id, current_user)


@router.post("/", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    request: Request,
    body: JobCreate,
    current_user: Principal = Depends(require_roles(RoleName.EMPLOYER, RoleName.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Post a new job.
    """
    return await JobService(db).create_job(current_user, body.model_dump(), get_client_ip(request))


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    request: Request,
    job_id: UUID,
    body: JobUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a job; only the employer who posted it or an admin may.
    """
    return await JobService(db).update_job(
        job_id, current_user, body.model_dump(exclude_unset=True), get_client_ip(request)
    )


@router.delete("/{job_id}", response_model=JobDeleteResponse, response_model_exclude_none=True)
async def delete_job(
    request: Request,
    job_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a job. Jobs that already have applications are closed instead.
    """
    return await JobService(db).delete_job(job_id, current_user, get_client_ip(request))


@router.get("/{job_id}/applications")
async def list_job_applications(
    job_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await JobService(db).list_job_applications(job_id, current_user, status_filter, page, limit)
    return {
        "job_title": result["job_title"],
        "applications": result["applications"],
        "pagination": pagination_meta(page, limit, result["total"]),
    }
