"""
Job seeker profile service.

The profile summary and personal details are one row per user and are
upserted. Addresses, education, experience and references are collections
owned by the user; every lookup is scoped to the caller so one user can never
read or change another's records.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.base import Base, as_dict
from app.models.profile import Address, Education, Experience, JobSeekerProfile, PersonalDetails, Reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    model: Type[Base]
    label: str
    order_by: tuple


COLLECTIONS: Dict[str, Collection] = {
    "addresses": Collection(Address, "Address", (Address.is_primary.desc(), Address.created_at.asc())),
    "education": Collection(Education, "Education record", (Education.start_date.desc(), Education.created_at.desc())),
    "experience": Collection(Experience, "Experience record", (Experience.start_date.desc(), Experience.created_at.desc())),
    "references": Collection(Reference, "Reference", (Reference.created_at.desc(),)),
}


class ProfileService:
    """Service for the caller's own job seeker profile."""

    def __init__(self, db: AsyncSession, user_id: UUID):
        self.db = db
        self.user_id = user_id

    # Single-row sections

    async def get_profile(self) -> Optional[Dict[str, Any]]:
        profile = await self._single(JobSeekerProfile)
        return as_dict(profile) if profile else None

    async def update_profile(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return as_dict(await self._upsert(JobSeekerProfile, values))

    async def get_personal_details(self) -> Optional[Dict[str, Any]]:
        details = await self._single(PersonalDetails)
        return as_dict(details) if details else None

    async def update_personal_details(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return as_dict(await self._upsert(PersonalDetails, values))

    async def _single(self, model):
        result = await self.db.execute(select(model).where(model.user_id == self.user_id))
        return result.scalar_one_or_none()

    async def _upsert(self, model, values: Dict[str, Any]):
        record = await self._single(model)
        if record is None:
            record = model(user_id=self.user_id, **values)
            self.db.add(record)
        else:
            for field, value in values.items():
                setattr(record, field, value)
        await self.db.commit()
        await self.db.refresh(record)
        logger.debug(f"Upserted {model.__tablename__} for user {self.user_id}")
        return record

    # Collections

    async def list_records(self, kind: str) -> List[Dict[str, Any]]:
        collection = COLLECTIONS[kind]
        model = collection.model
        result = await self.db.execute(
            select(model).where(model.user_id == self.user_id).order_by(*collection.order_by)
        )
        return [as_dict(record) for record in result.scalars()]

    async def create_record(self, kind: str, values: Dict[str, Any]) -> Dict[str, Any]:
        model = COLLECTIONS[kind].model
        if model is Address and values.get("is_primary"):
            await self._demote_primary_addresses()
        record = model(user_id=self.user_id, **values)
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Created {model.__tablename__} {record.id} for user {self.user_id}")
        return as_dict(record)

    async def update_record(self, kind: str, record_id: UUID, values: Dict[str, Any]) -> Dict[str, Any]:
        """Replace every editable field of one of the caller's records."""
        record = await self._owned(kind, record_id)
        if isinstance(record, Address) and values.get("is_primary"):
            await self._demote_primary_addresses(exclude=record.id)
        for field, value in values.items():
            setattr(record, field, value)
        await self.db.commit()
        await self.db.refresh(record)
        return as_dict(record)

    async def delete_record(self, kind: str, record_id: UUID) -> None:
        record = await self._owned(kind, record_id)
        await self.db.delete(record)
        await self.db.commit()
        logger.info(f"Deleted {record.__tablename__} {record_id} for user {self.user_id}")

    async def set_primary_address(self, address_id: UUID) -> Dict[str, Any]:
        """Make one address the primary; any other primary address is demoted."""
        address = await self._owned("addresses", address_id)
        await self._demote_primary_addresses(exclude=address.id)
        address.is_primary = True
        await self.db.commit()
        await self.db.refresh(address)
        return as_dict(address)

    async def full_profile(self) -> Dict[str, Any]:
        return {
            "profile": await self.get_profile(),
            "personalDetails": await self.get_personal_details(),
            "addresses": await self.list_records("addresses"),
            "education": await self.list_records("education"),
            "experience": await self.list_records("experience"),
            "references": await self.list_records("references"),
        }

    async def _owned(self, kind: str, record_id: UUID):
        collection = COLLECTIONS[kind]
        model = collection.model
        result = await self.db.execute(
            select(model).where(model.id == record_id, model.user_id == self.user_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(f"{collection.label} not found")
        return record

    async def _demote_primary_addresses(self, exclude: Optional[UUID] = None) -> None:
        stmt = update(Address).where(Address.user_id == self.user_id, Address.is_primary.is_(True))
        if exclude is not None:
            stmt = stmt.where(Address.id != exclude)
        await self.db.execute(stmt.values(is_primary=False).execution_options(synchronize_session="fetch"))
