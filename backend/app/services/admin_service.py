"""
Admin service: user moderation, job moderation, platform statistics and the
admin action log.

Every mutation records an admin log entry after it is committed.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import count_query_results, paginate_query, utcnow
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.permissions import Principal, RoleName
from app.models.application import Application, ApplicationStatus
from app.models.audit import AdminLog
from app.models.base import as_dict
from app.models.company import Company
from app.models.job import Job, JobStatus
from app.models.rbac import Role, UserRole
from app.models.user import User
from app.services.audit_service import audit_service
from app.services.rbac_service import RBACService

logger = logging.getLogger(__name__)

USER_SORT_COLUMNS = {
    "created_at": User.created_at,
    "last_login": User.last_login,
    "email": User.email,
    "name": User.first_name,
}


def _count_where(condition):
    return func.count(case((condition, 1)))


class AdminService:
    """Service for the admin dashboard."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.rbac = RBACService(db)

    # Users

    async def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        role: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Dict[str, Any]], int, Dict[str, int]]:
        query = select(User)
        if role:
            query = query.where(User.id.in_(
                select(UserRole.user_id).join(Role, Role.id == UserRole.role_id).where(Role.name == role.upper())
            ))
        if status == "blocked":
            query = query.where(User.is_blocked.is_(True))
        elif status == "active":
            query = query.where(User.is_active.is_(True), User.is_blocked.is_(False))
        elif status == "inactive":
            query = query.where(User.is_active.is_(False))
        if search:
            term = f"%{search.strip()}%"
            query = query.where(or_(
                User.email.ilike(term),
                User.first_name.ilike(term),
                User.last_name.ilike(term),
            ))

        total = await count_query_results(self.db, query)

        column = USER_SORT_COLUMNS.get(sort_by, User.created_at)
        ordered = column.asc() if sort_order.lower() == "asc" else column.desc()
        users = list((await self.db.execute(paginate_query(query.order_by(ordered), page, limit))).scalars())

        roles = await self.rbac.get_roles_for_users(user.id for user in users)
        items = []
        for user in users:
            item = user.to_dict()
            item["roles"] = roles.get(user.id, [])
            items.append(item)

        summary_row = (await self.db.execute(
            select(
                func.count(),
                _count_where(and_(User.is_active.is_(True), User.is_blocked.is_(False))),
                _count_where(User.is_blocked.is_(True)),
            ).select_from(User)
        )).one()
        summary = {
            "total_users": summary_row[0],
            "active_users": summary_row[1],
            "blocked_users": summary_row[2],
        }
        return items, total, summary

    async def get_user(self, user_id: UUID) -> Dict[str, Any]:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        data = user.to_dict()
        data["roles"] = await self.rbac.get_user_roles(user.id)
        data["jobs_posted"] = await self.db.scalar(
            select(func.count()).select_from(Job).where(Job.employer_id == user_id)
        )
        data["applications_submitted"] = await self.db.scalar(
            select(func.count()).select_from(Application).where(Application.applicant_id == user_id)
        )
        return data

    async def set_blocked(
        self,
        user_id: UUID,
        admin: Principal,
        block: bool,
        reason: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        if user.id == admin.id:
            raise BadRequestError("You cannot block yourself")

        reason = (reason or "").strip() or None
        if block and not reason:
            raise BadRequestError("Reason is required when blocking a user")

        user.is_blocked = block
        user.blocked_at = utcnow() if block else None
        user.block_reason = reason if block else None
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"User {user_id} {'blocked' if block else 'unblocked'} by {admin.id}")

        await audit_service.log_admin_action(
            admin_id=admin.id,
            action="BLOCK_USER" if block else "UNBLOCK_USER",
            target_type="user",
            target_id=user_id,
            details={"reason": reason},
            ip_address=ip_address,
        )
        return {
            "message": "User blocked successfully" if block else "User unblocked successfully",
            "user": user.to_dict(),
        }

    # Jobs

    async def list_jobs(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[JobStatus] = None,
        employer_id: Optional[UUID] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int, Dict[str, int]]:
        query = select(Job, User).outerjoin(User, User.id == Job.employer_id)
        if status is not None:
            query = query.where(Job.status == status)
        if employer_id is not None:
            query = query.where(Job.employer_id == employer_id)
        if featured is not None:
            query = query.where(Job.is_featured.is_(featured))
        if search:
            term = f"%{search.strip()}%"
            query = query.where(or_(Job.title.ilike(term), Job.description.ilike(term), Job.company.ilike(term)))

        total = await count_query_results(self.db, query)
        result = await self.db.execute(paginate_query(query.order_by(Job.created_at.desc()), page, limit))
        items = []
        for job, employer in result.all():
            item = as_dict(job)
            item["employer_email"] = employer.email if employer else None
            item["employer_name"] = employer.full_name if employer else None
            items.append(item)

        summary_row = (await self.db.execute(
            select(
                func.count(),
                _count_where(Job.status == JobStatus.ACTIVE),
                _count_where(Job.is_featured.is_(True)),
            ).select_from(Job)
        )).one()
        summary = {"total_jobs": summary_row[0], "active_jobs": summary_row[1], "featured_jobs": summary_row[2]}
        return items, total, summary

    async def delete_job(self, job_id: UUID, admin: Principal, ip_address: Optional[str] = None) -> Dict[str, Any]:
        """Hard delete a job together with its applications."""
        job = await self.db.get(Job, job_id)
        if job is None:
            raise NotFoundError("Job not found")
        title, employer_id = job.title, job.employer_id

        await self.db.execute(delete(Application).where(Application.job_id == job_id))
        await self.db.delete(job)
        await self.db.commit()
        logger.info(f"Job {job_id} deleted by admin {admin.id}")

        await audit_service.log_admin_action(
            admin_id=admin.id,
            action="DELETE_JOB",
            target_type="job",
            target_id=job_id,
            details={"title": title, "employer_id": employer_id},
            ip_address=ip_address,
        )
        return {"message": "Job deleted successfully", "job": {"id": job_id, "title": title}}

    async def set_featured(
        self,
        job_id: UUID,
        admin: Principal,
        featured: bool,
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        job = await self.db.get(Job, job_id)
        if job is None:
            raise NotFoundError("Job not found")
        job.is_featured = featured
        await self.db.commit()

        await audit_service.log_admin_action(
            admin_id=admin.id,
            action="FEATURE_JOB" if featured else "UNFEATURE_JOB",
            target_type="job",
            target_id=job_id,
            details={"title": job.title},
            ip_address=ip_address,
        )
        return {
            "message": "Job featured successfully" if featured else "Job unfeatured successfully",
            "job": {"id": job.id, "title": job.title, "is_featured": job.is_featured},
        }

    # Statistics and logs

    async def statistics(self) -> Dict[str, Any]:
        now = utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = now - timedelta(days=7)

        users = (await self.db.execute(
            select(
                func.count(),
                _count_where(and_(User.is_active.is_(True), User.is_blocked.is_(False))),
                _count_where(User.is_blocked.is_(True)),
                _count_where(User.is_active.is_(False)),
                _count_where(User.created_at >= today),
                _count_where(User.created_at >= week_ago),
            ).select_from(User)
        )).one()

        role_counts = {role.value: 0 for role in RoleName}
        for name, count in await self.db.execute(
            select(Role.name, func.count(UserRole.id))
            .join(UserRole, UserRole.role_id == Role.id)
            .group_by(Role.name)
        ):
            role_counts[name] = count

        jobs = (await self.db.execute(
            select(
                func.count(),
                _count_where(Job.status == JobStatus.ACTIVE),
                _count_where(Job.status == JobStatus.CLOSED),
                _count_where(Job.status == JobStatus.DRAFT),
                _count_where(Job.is_featured.is_(True)),
                func.coalesce(func.sum(Job.views_count), 0),
            ).select_from(Job)
        )).one()

        applications = {status.value: 0 for status in ApplicationStatus}
        for status, count in await self.db.execute(
            select(Application.status, func.count()).group_by(Application.status)
        ):
            applications[ApplicationStatus(status).value] = count

        companies = (await self.db.execute(
            select(func.count(), _count_where(Company.is_active.is_(True))).select_from(Company)
        )).one()

        return {
            "users": {
                "total": users[0],
                "active": users[1],
                "blocked": users[2],
                "inactive": users[3],
                "new_today": users[4],
                "new_this_week": users[5],
                "by_role": role_counts,
            },
            "jobs": {
                "total": jobs[0],
                "active": jobs[1],
                "closed": jobs[2],
                "draft": jobs[3],
                "featured": jobs[4],
                "total_views": int(jobs[5] or 0),
            },
            "applications": {"total": sum(applications.values()), **applications},
            "companies": {"total": companies[0], "active": companies[1]},
            "system": {"version": settings.app_version, "environment": settings.environment},
        }

    async def audit_logs(
        self,
        page: int = 1,
        limit: int = 20,
        admin_id: Optional[UUID] = None,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        from_date: Optional[datetime] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        query = select(AdminLog, User).outerjoin(User, User.id == AdminLog.admin_id)
        if admin_id is not None:
            query = query.where(AdminLog.admin_id == admin_id)
        if action:
            query = query.where(AdminLog.action == action)
        if target_type:
            query = query.where(AdminLog.target_type == target_type)
        if from_date is not None:
            query = query.where(AdminLog.created_at >= from_date)

        total = await count_query_results(self.db, query)
        result = await self.db.execute(paginate_query(query.order_by(AdminLog.created_at.desc()), page, limit))
        logs = []
        for log, admin in result.all():
            item = log.to_dict()
            item["admin_email"] = admin.email if admin else None
            item["admin_name"] = admin.full_name if admin else None
            logs.append(item)
        return logs, total
