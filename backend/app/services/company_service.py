"""
Company service: listing, creation, updates, activation state and membership.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import count_query_results, paginate_query
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.core.permissions import Principal
from app.models.base import as_dict
from app.models.company import Company, CompanyUser
from app.models.user import User
from app.services.audit_service import audit_service
from app.services.rbac_service import RBACService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "name",
    "industry",
    "description",
    "website",
    "logo_url",
    "contact_email",
    "contact_phone",
    "address_line1",
    "address_line2",
    "city",
    "country",
)


def _with_creator(company: Company, first_name: Optional[str], last_name: Optional[str]) -> Dict[str, Any]:
    data = as_dict(company)
    name = f"{first_name or ''} {last_name or ''}".strip()
    data["created_by_name"] = name or None
    return data


class CompanyService:
    """Service for companies and company membership."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self):
        return (
            select(Company, User.first_name, User.last_name)
            .outerjoin(User, User.id == Company.created_by)
        )

    async def list_companies(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        status: str = "all",
    ) -> Tuple[List[Dict[str, Any]], int]:
        query = self._base_query()
        if search:
            term = f"%{search.strip()}%"
            query = query.where(or_(
                Company.name.ilike(term),
                Company.industry.ilike(term),
                Company.city.ilike(term),
                Company.country.ilike(term),
            ))
        if status == "active":
            query = query.where(Company.is_active.is_(True))
        elif status == "inactive":
            query = query.where(Company.is_active.is_(False))

        total = await count_query_results(self.db, query)
        result = await self.db.execute(
            paginate_query(query.order_by(Company.created_at.desc()), page, limit)
        )
        return [_with_creator(*row) for row in result.all()], total

    async def get_company(self, company_id: UUID) -> Dict[str, Any]:
        row = (await self.db.execute(
            self._base_query().where(Company.id == company_id)
        )).first()
        if row is None:
            raise NotFoundError("Company not found")
        return _with_creator(*row)

    async def create_company(
        self,
        user_id: UUID,
        values: Dict[str, Any],
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        company = Company(**{k: v for k, v in values.items() if k in UPDATABLE_FIELDS}, created_by=user_id)
        self.db.add(company)
        await self.db.flush()
        self.db.add(CompanyUser(company_id=company.id, user_id=user_id, role="owner"))
        await self.db.commit()
        logger.info(f"Company {company.id} created by {user_id}")

        data = await self.get_company(company.id)
        await audit_service.log_audit(
            action="COMPANY_CREATED",
            entity_type="company",
            entity_id=company.id,
            user_id=user_id,
            new_values=data,
            ip_address=ip_address,
        )
        return data

    async def update_company(
        self,
        company_id: UUID,
        user_id: UUID,
        changes: Dict[str, Any],
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if not changes:
            raise BadRequestError("No valid fields to update")

        company = await self._require(company_id)
        old_values = as_dict(company)
        for field, value in changes.items():
            setattr(company, field, value)
        await self.db.commit()

        data = await self.get_company(company_id)
        await audit_service.log_audit(
            action="COMPANY_UPDATED",
            entity_type="company",
            entity_id=company_id,
            user_id=user_id,
            old_values={k: old_values.get(k) for k in changes},
            new_values=changes,
            ip_address=ip_address,
        )
        return data

    async def set_active(
        self,
        company_id: UUID,
        user_id: UUID,
        active: bool,
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        company = await self._require(company_id)
        previous = company.is_active
        company.is_active = active
        await self.db.commit()
        logger.info(f"Company {company_id} {'activated' if active else 'deactivated'} by {user_id}")

        data = await self.get_company(company_id)
        await audit_service.log_audit(
            action="COMPANY_ACTIVATED" if active else "COMPANY_DEACTIVATED",
            entity_type="company",
            entity_id=company_id,
            user_id=user_id,
            old_values={"is_active": previous},
            new_values={"is_active": active},
            ip_address=ip_address,
        )
        return data

    # Membership

    async def list_members(self, company_id: UUID, actor: Principal) -> List[Dict[str, Any]]:
        await self._require(company_id)
        if not actor.is_admin and not await self.is_member(company_id, actor.id):
            raise ForbiddenError("You do not have access to this company")

        result = await self.db.execute(
            select(User, CompanyUser.role, CompanyUser.created_at)
            .join(CompanyUser, CompanyUser.user_id == User.id)
            .where(CompanyUser.company_id == company_id)
            .order_by(CompanyUser.created_at)
        )
        rows = result.all()
        roles = await RBACService(self.db).get_roles_for_users(user.id for user, _, _ in rows)
        return [
            {
                "id": user.id,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "email": user.email,
                "is_active": user.is_active,
                "membership_role": membership_role,
                "roles": roles.get(user.id, []),
                "joined_at": joined_at,
            }
            for user, membership_role, joined_at in rows
        ]

    async def add_member(
        self,
        company_id: UUID,
        user_id: UUID,
        actor: Principal,
        role: str = "member",
        ip_address: Optional[str] = None,
    ) -> bool:
        """
        Add a user to a company.

        Returns False when the user already belonged to it; the existing
        membership is left unchanged.
        """
        await self._require_manager(company_id, actor)
        if await self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")
        if await self.is_member(company_id, user_id):
            return False

        self.db.add(CompanyUser(company_id=company_id, user_id=user_id, role=role))
        await self.db.commit()
        logger.info(f"User {user_id} added to company {company_id} by {actor.id}")

        await audit_service.log_audit(
            action="COMPANY_USER_ADDED",
            entity_type="company",
            entity_id=company_id,
            user_id=actor.id,
            new_values={"user_id": str(user_id), "role": role},
            ip_address=ip_address,
        )
        return True

    async def remove_member(
        self,
        company_id: UUID,
        user_id: UUID,
        actor: Principal,
        ip_address: Optional[str] = None,
    ) -> None:
        await self._require_manager(company_id, actor)
        if user_id == actor.id:
            raise ForbiddenError("You cannot remove yourself from the company")

        result = await self.db.execute(
            delete(CompanyUser).where(CompanyUser.company_id == company_id, CompanyUser.user_id == user_id)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError("User not found in this company")
        await self.db.commit()
        logger.info(f"User {user_id} removed from company {company_id} by {actor.id}")

        await audit_service.log_audit(
            action="COMPANY_USER_REMOVED",
            entity_type="company",
            entity_id=company_id,
            user_id=actor.id,
            old_values={"user_id": str(user_id)},
            ip_address=ip_address,
        )

    async def _require_manager(self, company_id: UUID, actor: Principal) -> Company:
        """Admins manage any company; everyone else only companies they belong to."""
        company = await self._require(company_id)
        if not actor.is_admin and not await self.is_member(company_id, actor.id):
            raise ForbiddenError("You do not have permission to manage company users")
        return company

    async def is_member(self, company_id: UUID, user_id: UUID) -> bool:
        result = await self.db.execute(
            select(CompanyUser.id).where(CompanyUser.company_id == company_id, CompanyUser.user_id == user_id)
        )
        return result.scalar_one_or_none() is not None

    async def _require(self, company_id: UUID) -> Company:
        company = await self.db.get(Company, company_id)
        if company is None:
            raise NotFoundError("Company not found")
        return company
