"""
Job seeker profile endpoints.

Every route is scoped to the caller. The collection routes (addresses,
education, experience, references) share one shape and are registered by
``_collection_routes``.
"""

from typing import Type
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.database import get_db
from app.core.permissions import Principal
from app.schemas.profile import (
    AddressIn,
    EducationIn,
    ExperienceIn,
    PersonalDetailsUpdate,
    ProfileUpdate,
    ReferenceIn,
)
from app.services.profile_service import COLLECTIONS, ProfileService

router = APIRouter()


async def get_profile_service(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileService:
    return ProfileService(db, current_user.id)


@router.get("/profile")
async def get_profile(service: ProfileService = Depends(get_profile_service)):
    return {"profile": await service.get_profile()}


@router.put("/profile")
async def update_profile(body: ProfileUpdate, service: ProfileService = Depends(get_profile_service)):
    """
    Create or replace the profile summary.
    """
    return {"profile": await service.update_profile(body.model_dump())}


@router.get("/personal-details")
async def get_personal_details(service: ProfileService = Depends(get_profile_service)):
    return {"personalDetails": await service.get_personal_details()}


@router.put("/personal-details")
async def update_personal_details(body: PersonalDetailsUpdate, service: ProfileService = Depends(get_profile_service)):
    return {"personalDetails": await service.update_personal_details(body.model_dump())}


@router.get("/full-profile")
async def get_full_profile(service: ProfileService = Depends(get_profile_service)):
    """
    Every profile section in one response.
    """
    return await service.full_profile()


def _collection_routes(kind: str, schema: Type[BaseModel], singular: str) -> None:
    """Register list, create, update and delete routes for one collection."""
    path = f"/{kind}"
    label = COLLECTIONS[kind].label

    @router.get(path, name=f"list_{kind}")
    async def list_records(service: ProfileService = Depends(get_profile_service)):
        return {kind: await service.list_records(kind)}

    @router.post(path, status_code=status.HTTP_201_CREATED, name=f"create_{singular}")
    async def create_record(body: schema, service: ProfileService = Depends(get_profile_service)):
        return {singular: await service.create_record(kind, body.model_dump())}

    @router.put(path + "/{record_id}", name=f"update_{singular}")
    async def update_record(record_id: UUID, body: schema, service: ProfileService = Depends(get_profile_service)):
        return {singular: await service.update_record(kind, record_id, body.model_dump())}

    @router.delete(path + "/{record_id}", name=f"delete_{singular}")
    async def delete_record(record_id: UUID, service: ProfileService = Depends(get_profile_service)):
        await service.delete_record(kind, record_id)
        return {"message": f"{label} deleted"}


_collection_routes("addresses", AddressIn, "address")
_collection_routes("education", EducationIn, "education")
_collection_routes("experience", ExperienceIn, "experience")
_collection_routes("references", ReferenceIn, "reference")


@router.patch("/addresses/{address_id}/primary")
async def set_primary_address(address_id: UUID, service: ProfileService = Depends(get_profile_service)):
    """
    Mark one address as primary. The previous primary address is demoted.
    """
    return {"address": await service.set_primary_address(address_id)}
