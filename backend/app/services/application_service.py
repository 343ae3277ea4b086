"""
Application service for the job board.

This service covers the whole life of a job application: submission by a
job seeker, review by the employer and withdrawal by the applicant. Every
transition notifies the people involved.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.database import count_query_results, ensure_aware, paginate_query, utcnow
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.core.permissions import Permission, Principal, RoleName
from app.models.application import Application, ApplicationStatus, WITHDRAWABLE_STATUSES
from app.models.base import as_dict
from app.models.job import Job, JobStatus
from app.models.user import User
from app.services.audit_service import audit_service
from app.services.notification_service import NotificationService
from app.services.rbac_service import RBACService

logger = logging.getLogger(__name__)

APPLICATIONS_LINK = "/app/job-applications"

# Hidden from the applicant's own view
EMPLOYER_ONLY_FIELDS = ("employer_email", "employer_name", "notes")


class ApplicationService:
    """Service for job applications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply(
        self,
        applicant: Principal,
        job_id: UUID,
        cover_letter: Optional[str] = None,
        resume_url: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        job = await self.db.get(Job, job_id)
        if job is None:
            raise NotFoundError("Job not found")
        if job.status != JobStatus.ACTIVE:
            raise ForbiddenError("This job is not accepting applications")

        deadline = ensure_aware(job.application_deadline)
        if deadline is not None and deadline < utcnow():
            raise BadRequestError("The application deadline for this job has passed")
        if job.employer_id == applicant.id:
            raise ForbiddenError("Employers cannot apply to their own jobs")

        existing = await self.db.execute(
            select(Application.id).where(Application.job_id == job_id, Application.applicant_id == applicant.id)
        )
        if existing.scalar_one_or_none() is not None:
            raise BadRequestError("You have already applied to this job")

        application = Application(
            job_id=job_id,
            applicant_id=applicant.id,
            cover_letter=cover_letter,
            resume_url=resume_url,
            status=ApplicationStatus.PENDING,
        )
        self.db.add(application)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("You have already applied to this job")
        await self.db.refresh(application)
        logger.info(f"Application {application.id} submitted for job {job_id} by {applicant.id}")

        applicant_name = applicant.name or applicant.email or "A job seeker"
        await audit_service.log_audit(
            action="APPLICATION_CREATED",
            entity_type="application",
            entity_id=application.id,
            user_id=applicant.id,
            new_values={"job_id": job_id, "applicant_id": applicant.id},
            ip_address=ip_address,
        )
        await self._notify_submission(application, job, applicant, applicant_name)

        data = as_dict(application)
        data["job_title"] = job.title
        return data

    async def _notify_submission(self, application: Application, job: Job, applicant: Principal, applicant_name: str) -> None:
        details = {
            "job_id": job.id,
            "application_id": application.id,
            "applicant_id": applicant.id,
            "applicant_name": applicant_name,
            "job_title": job.title,
            "company_name": job.company,
        }
        review_link = f"/app/jobs/{job.id}/applications"

        await NotificationService.create_notification(
            job.employer_id,
            "application_received",
            "New Application Received",
            f"{applicant_name} has applied for {job.title}",
            data=_jsonable(details),
            priority="high",
            action_url=review_link,
        )

        try:
            managers = await RBACService(self.db).user_ids_with_permission(Permission.MANAGE_USERS.value)
        except Exception as e:
            logger.error(f"Could not load user managers to notify: {e}")
            managers = []
        for manager_id in managers:
            if manager_id in (applicant.id, job.employer_id):
                continue
            await NotificationService.create_notification(
                manager_id,
                "application_received",
                "New Job Application",
                f"{applicant_name} applied for {job.title}",
                data=_jsonable(details),
                priority="normal",
                action_url=review_link,
            )

        await NotificationService.create_notification(
            applicant.id,
            "application_success",
            "Application Submitted",
            f"Your application for {job.title} has been submitted successfully",
            data=_jsonable({
                "application_id": application.id,
                "job_id": job.id,
                "status": application.status.value,
                "job_title": job.title,
                "company_name": job.company,
            }),
            priority="normal",
            action_url=APPLICATIONS_LINK,
        )

    async def list_my_applications(
        self,
        applicant_id: UUID,
        status: Optional[ApplicationStatus] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Dict[str, Any]], int]:
        query = (
            select(Application, Job)
            .outerjoin(Job, Job.id == Application.job_id)
            .where(Application.applicant_id == applicant_id)
        )
        if status is not None:
            query = query.where(Application.status == status)

        total = await count_query_results(self.db, query)
        order = Application.created_at.asc() if sort == "oldest" else Application.created_at.desc()
        result = await self.db.execute(paginate_query(query.order_by(order), page, limit))

        items = []
        for application, job in result.all():
            item = as_dict(application)
            item.update(_job_summary(job))
            items.append(item)
        return items, total

    async def list_employer_applications(
        self,
        employer: Principal,
        job_id: Optional[UUID] = None,
        status: Optional[ApplicationStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Dict[str, Any]], int]:
        query = (
            select(Application, Job, User)
            .join(Job, Job.id == Application.job_id)
            .join(User, User.id == Application.applicant_id)
        )
        if not employer.is_admin:
            query = query.where(Job.employer_id == employer.id)
        if job_id is not None:
            query = query.where(Application.job_id == job_id)
        if status is not None:
            query = query.where(Application.status == status)

        total = await count_query_results(self.db, query)
        result = await self.db.execute(
            paginate_query(query.order_by(Application.created_at.desc()), page, limit)
        )

        items = []
        for application, job, applicant in result.all():
            item = as_dict(application)
            item.update(_job_summary(job))
            item["applicant_name"] = applicant.full_name
            item["applicant_email"] = applicant.email
            items.append(item)
        return items, total

    async def get_application(self, application_id: UUID, viewer: Principal) -> Dict[str, Any]:
        """
        Application with job, applicant and employer details.

        The applicant's own view omits the employer's contact and review notes.
        """
        employer_user = aliased(User)
        row = (await self.db.execute(
            select(Application, Job, User, employer_user)
            .outerjoin(Job, Job.id == Application.job_id)
            .outerjoin(User, User.id == Application.applicant_id)
            .outerjoin(employer_user, employer_user.id == Job.employer_id)
            .where(Application.id == application_id)
        )).first()
        if row is None:
            raise NotFoundError("Application not found")
        application, job, applicant, employer = row

        is_applicant = application.applicant_id == viewer.id
        is_employer = job is not None and job.employer_id == viewer.id
        is_staff = viewer.has_role(RoleName.ADMIN, RoleName.HR)
        if not (is_applicant or is_employer or is_staff):
            raise ForbiddenError("You do not have permission to view this application")

        data = as_dict(application)
        data.update(_job_summary(job))
        if job is not None:
            data["job_description"] = job.description
            data["experience_level"] = job.experience_level
            data["job_status"] = job.status
            data["employer_id"] = job.employer_id
        data["applicant_name"] = applicant.full_name if applicant else None
        data["applicant_email"] = applicant.email if applicant else None
        data["applicant_phone"] = applicant.phone if applicant else None
        data["employer_name"] = employer.full_name if employer else None
        data["employer_email"] = employer.email if employer else None

        if is_applicant and not (is_employer or is_staff):
            for field in EMPLOYER_ONLY_FIELDS:
                data.pop(field, None)
        return data

    async def update_status(
        self,
        application_id: UUID,
        reviewer: Principal,
        status: str,
        notes: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        row = (await self.db.execute(
            select(Application, Job)
            .join(Job, Job.id == Application.job_id)
            .where(Application.id == application_id)
        )).first()
        if row is None:
            raise NotFoundError("Application not found")
        application, job = row

        if job.employer_id != reviewer.id and not reviewer.has_permission(Permission.MANAGE_USERS):
            raise ForbiddenError("Not authorized to update this application")
        if application.status == ApplicationStatus.WITHDRAWN:
            raise BadRequestError("Cannot update a withdrawn application")

        new_status = ApplicationStatus(status)
        old_status = application.status
        if new_status != ApplicationStatus.PENDING and new_status != old_status:
            application.reviewed_at = utcnow()
            application.reviewed_by = reviewer.id
        application.status = new_status
        if notes is not None:
            application.notes = notes
        await self.db.commit()
        await self.db.refresh(application)
        logger.info(f"Application {application_id} moved {old_status.value} -> {new_status.value} by {reviewer.id}")

        await audit_service.log_admin_action(
            admin_id=reviewer.id,
            action="UPDATE_APPLICATION_STATUS",
            target_type="application",
            target_id=application_id,
            details={"old_status": old_status.value, "new_status": new_status.value},
            ip_address=ip_address,
        )
        await NotificationService.create_notification(
            application.applicant_id,
            "application_update",
            "Application Status Update",
            f"Your application for {job.title} has been updated to {new_status.value}",
            data=_jsonable({
                "application_id": application.id,
                "job_id": job.id,
                "status": new_status.value,
                "job_title": job.title,
                "company_name": job.company,
            }),
            priority="normal" if new_status == ApplicationStatus.REJECTED else "high",
            action_url=APPLICATIONS_LINK,
        )
        return as_dict(application)

    async def withdraw(self, application_id: UUID, applicant: Principal) -> Dict[str, Any]:
        application = await self.db.get(Application, application_id)
        if application is None:
            raise NotFoundError("Application not found")
        if application.applicant_id != applicant.id:
            raise ForbiddenError("You can only withdraw your own applications")
        if application.status not in WITHDRAWABLE_STATUSES:
            raise BadRequestError(f"Cannot withdraw application with status '{application.status.value}'")

        application.status = ApplicationStatus.WITHDRAWN
        application.withdrawn_at = utcnow()
        await self.db.commit()
        await self.db.refresh(application)
        logger.info(f"Application {application_id} withdrawn by {applicant.id}")

        await audit_service.log_audit(
            action="APPLICATION_WITHDRAWN",
            entity_type="application",
            entity_id=application_id,
            user_id=applicant.id,
            new_values={"status": ApplicationStatus.WITHDRAWN.value},
        )
        return as_dict(application)


def _job_summary(job: Optional[Job]) -> Dict[str, Any]:
    if job is None:
        return {"job_title": None}
    return {
        "job_title": job.title,
        "company": job.company,
        "location": job.location,
        "salary_min": job.salary_min,
        "salary_max": job.salary_max,
        "salary_currency": job.salary_currency,
        "employment_type": job.employment_type,
        "remote": job.remote,
    }


def _jsonable(data: Dict[str, Any]) -> Dict[str, Any]:
    """Notification payloads are stored as JSON; ids become strings."""
    return {key: str(value) if isinstance(value, UUID) else value for key, value in data.items()}
