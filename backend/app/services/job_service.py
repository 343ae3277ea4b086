"""
Job service for the job board.

This service handles publishing, searching, updating and closing job
postings, and the employer's view of the applications a job received.

Features:
- Visibility rules per caller (public, job seeker, owning employer, admin)
- Filtered, paginated search over active postings
- View counting and per-status application statistics
- Close-instead-of-delete when a job already has applications
- The employer dashboard: posting totals, recent applications, per-job counts
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import count_query_results, paginate_query
from app.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError, ValidationAppError
from app.core.permissions import Principal, RoleName
from app.models.application import Application, ApplicationStatus
from app.models.base import as_dict
from app.models.company import Company
from app.models.job import EmploymentType, ExperienceLevel, Job, JobStatus
from app.models.user import User
from app.services.audit_service import audit_service

logger = logging.getLogger(__name__)


class JobService:
    """Service for job postings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_jobs(
        self,
        viewer: Optional[Principal],
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        location: Optional[str] = None,
        category: Optional[str] = None,
        employment_type: Optional[EmploymentType] = None,
        experience_level: Optional[ExperienceLevel] = None,
        remote: Optional[bool] = None,
        status: Optional[JobStatus] = None,
        my_jobs: bool = False,
    ) -> Tuple[List[Job], int]:
        """
        Search jobs visible to ``viewer``.

        Public callers and job seekers only see active jobs. Employers asking
        for ``my_jobs`` see their own jobs in any status; admins may filter on
        any status.
        """
        query = select(Job)

        if my_jobs:
            if viewer is None:
                raise UnauthorizedError("Authentication required to view your jobs")
            if not viewer.is_admin:
                query = query.where(Job.employer_id == viewer.id)
            if status is not None:
                query = query.where(Job.status == status)
        elif viewer is not None and viewer.is_admin:
            if status is not None:
                query = query.where(Job.status == status)
        else:
            query = query.where(Job.status == JobStatus.ACTIVE)

        if search:
            term = f"%{search.strip()}%"
            query = query.where(or_(
                Job.title.ilike(term),
                Job.description.ilike(term),
                Job.company.ilike(term),
            ))
        if location:
            query = query.where(Job.location.ilike(f"%{location.strip()}%"))
        if category:
            query = query.where(Job.category.ilike(category.strip()))
        if employment_type is not None:
            query = query.where(Job.employment_type == employment_type)
        if experience_level is not None:
            query = query.where(Job.experience_level == experience_level)
        if remote is not None:
            query = query.where(Job.remote.is_(remote))

        total = await count_query_results(self.db, query)
        query = query.order_by(Job.is_featured.desc(), Job.created_at.desc())
        result = await self.db.execute(paginate_query(query, page, limit))
        return list(result.scalars()), total

    async def get_job(self, job_id: UUID) -> Job:
        job = await self.db.get(Job, job_id)
        if job is None:
            raise NotFoundError("Job not found")
        return job

    async def get_job_detail(self, job_id: UUID, viewer: Optional[Principal]) -> Dict[str, Any]:
        """Job with employer contact; owners and admins also get application stats."""
        row = (await self.db.execute(
            select(Job, User)
            .outerjoin(User, User.id == Job.employer_id)
            .where(Job.id == job_id)
        )).first()
        if row is None:
            raise NotFoundError("Job not found")
        job, employer = row

        is_owner = viewer is not None and viewer.id == job.employer_id
        privileged = is_owner or (viewer is not None and viewer.is_admin)

        if job.status != JobStatus.ACTIVE and not privileged:
            raise ForbiddenError("This job is not publicly available")

        if not is_owner:
            await self.db.execute(
                update(Job).where(Job.id == job.id).values(views_count=Job.views_count + 1)
            )
            await self.db.commit()
            await self.db.refresh(job)

        data = as_dict(job)
        data["employer_name"] = employer.full_name if employer else None
        data["employer_email"] = employer.email if employer else None
        if privileged:
            data["application_stats"] = await self.application_stats(job.id)
        return data

    async def application_stats(self, job_id: UUID) -> Dict[str, int]:
        return (await self._application_counts([job_id]))[job_id]

    async def create_job(self, employer: Principal, values: Dict[str, Any], ip_address: Optional[str] = None) -> Job:
        if values.get("company_id") is not None:
            await self._require_company(values["company_id"])

        job = Job(**values, employer_id=employer.id)
        self.db.add(job)
        await self.db.commit()
        await self.db.refresh(job)
        logger.info(f"Job {job.id} '{job.title}' created by {employer.id}")

        await audit_service.log_audit(
            action="JOB_CREATED",
            entity_type="job",
            entity_id=job.id,
            user_id=employer.id,
            new_values={"title": job.title, "status": job.status},
            ip_address=ip_address,
        )
        return job

    async def update_job(
        self,
        job_id: UUID,
        actor: Principal,
        changes: Dict[str, Any],
        ip_address: Optional[str] = None,
    ) -> Job:
        job = await self.get_job(job_id)
        self._require_owner_or_admin(job, actor, "Not authorized to update this job")

        if changes.get("company_id") is not None:
            await self._require_company(changes["company_id"])

        salary_min = changes.get("salary_min", job.salary_min)
        salary_max = changes.get("salary_max", job.salary_max)
        if salary_min is not None and salary_max is not None and salary_max < salary_min:
            raise ValidationAppError("Validation error", issues=[{
                "path": "salary_max",
                "message": "Maximum salary must be greater than or equal to minimum salary",
            }])

        old_values = {field: getattr(job, field) for field in changes}
        for field, value in changes.items():
            setattr(job, field, value)
        await self.db.commit()
        await self.db.refresh(job)

        await audit_service.log_audit(
            action="JOB_UPDATED",
            entity_type="job",
            entity_id=job.id,
            user_id=actor.id,
            old_values=old_values,
            new_values=changes,
            ip_address=ip_address,
        )
        return job

    async def delete_job(self, job_id: UUID, actor: Principal, ip_address: Optional[str] = None) -> Dict[str, Any]:
        """Delete a job, or close it when applications exist."""
        job = await self.get_job(job_id)
        self._require_owner_or_admin(job, actor, "Not authorized to delete this job")
        title = job.title

        applications = await self.db.scalar(
            select(func.count()).select_from(Application).where(Application.job_id == job_id)
        )
        if applications:
            job.status = JobStatus.CLOSED
            await self.db.commit()
            outcome = {
                "message": "Job has applications, marked as closed instead of deleted",
                "job_title": title,
                "status": JobStatus.CLOSED.value,
            }
            action = "JOB_CLOSED"
        else:
            await self.db.delete(job)
            await self.db.commit()
            outcome = {"message": "Job deleted successfully", "job_title": title}
            action = "JOB_DELETED"

        logger.info(f"{action} {job_id} by {actor.id}")
        await audit_service.log_audit(
            action=action,
            entity_type="job",
            entity_id=job_id,
            user_id=actor.id,
            old_values={"title": title},
            ip_address=ip_address,
        )
        return outcome

    async def list_job_applications(
        self,
        job_id: UUID,
        actor: Principal,
        status: Optional[ApplicationStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        job = await self.get_job(job_id)
        self._require_owner_or_admin(job, actor, "Not authorized to view applications for this job")

        query = (
            select(Application, User)
            .join(User, User.id == Application.applicant_id)
            .where(Application.job_id == job_id)
        )
        if status is not None:
            query = query.where(Application.status == status)

        total = await count_query_results(self.db, query)
        result = await self.db.execute(
            paginate_query(query.order_by(Application.created_at.desc()), page, limit)
        )

        applications = []
        for application, applicant in result.all():
            item = as_dict(application)
            item["applicant_name"] = applicant.full_name
            item["applicant_email"] = applicant.email
            item["applicant_phone"] = applicant.phone
            applications.append(item)
        return {"job_title": job.title, "applications": applications, "total": total}

    async def _application_counts(self, job_ids: List[UUID]) -> Dict[UUID, Dict[str, int]]:
        """Per-status application counts for each job in ``job_ids``."""
        counts = {job_id: {s.value: 0 for s in ApplicationStatus} for job_id in job_ids}
        if job_ids:
            result = await self.db.execute(
                select(Application.job_id, Application.status, func.count())
                .where(Application.job_id.in_(job_ids))
                .group_by(Application.job_id, Application.status)
            )
            for job_id, status, count in result:
                counts[job_id][ApplicationStatus(status).value] = count
        return {job_id: {"total": sum(c.values()), **c} for job_id, c in counts.items()}

    async def list_employer_jobs(
        self,
        employer_id: UUID,
        status: Optional[JobStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """The employer's own jobs in any status, each with its application counts."""
        query = select(Job).where(Job.employer_id == employer_id)
        if status is not None:
            query = query.where(Job.status == status)

        total = await count_query_results(self.db, query)
        result = await self.db.execute(paginate_query(query.order_by(Job.created_at.desc()), page, limit))
        jobs = list(result.scalars())
        counts = await self._application_counts([job.id for job in jobs])
        return [{**as_dict(job), "application_stats": counts[job.id]} for job in jobs], total

    async def employer_dashboard(self, employer_id: UUID, recent_limit: int = 10) -> Dict[str, Any]:
        """
        Posting totals, the latest applications and a per-job breakdown.

        Covers every job the employer posted regardless of status.
        """
        jobs = list((await self.db.execute(
            select(Job).where(Job.employer_id == employer_id).order_by(Job.created_at.desc())
        )).scalars())
        counts = await self._application_counts([job.id for job in jobs])

        by_status = {s.value: 0 for s in JobStatus}
        for job in jobs:
            by_status[JobStatus(job.status).value] += 1
        total_views = sum(job.views_count or 0 for job in jobs)
        stats = {
            "total_jobs": len(jobs),
            "active_jobs": by_status[JobStatus.ACTIVE.value],
            "draft_jobs": by_status[JobStatus.DRAFT.value],
            "closed_jobs": by_status[JobStatus.CLOSED.value],
            "total_views": total_views,
            "total_applications": sum(c["total"] for c in counts.values()),
            "avg_views_per_job": round(total_views / len(jobs), 2) if jobs else None,
        }

        recent = await self.db.execute(
            select(Application, Job.title, User)
            .join(Job, Job.id == Application.job_id)
            .join(User, User.id == Application.applicant_id)
            .where(Job.employer_id == employer_id)
            .order_by(Application.created_at.desc())
            .limit(recent_limit)
        )
        recent_applications = [
            {
                **as_dict(application),
                "job_title": job_title,
                "applicant_name": applicant.full_name,
                "applicant_email": applicant.email,
            }
            for application, job_title, applicant in recent.all()
        ]

        return {
            "stats": stats,
            "recent_applications": recent_applications,
            "jobs": [
                {
                    "id": job.id,
                    "title": job.title,
                    "status": job.status,
                    "created_at": job.created_at,
                    "views_count": job.views_count,
                    "application_stats": counts[job.id],
                }
                for job in jobs
            ],
        }

    def _require_owner_or_admin(self, job: Job, actor: Principal, message: str) -> None:
        if job.employer_id != actor.id and not actor.has_role(RoleName.ADMIN):
            raise ForbiddenError(message)

    async def _require_company(self, company_id: UUID) -> Company:
        company = await self.db.get(Company, company_id)
        if company is None:
            raise NotFoundError("Company not found")
        return company
