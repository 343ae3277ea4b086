from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_permission
from app.core.database import get_db, pagination_meta
from app.core.permissions import Permission, Principal
from app.core.security import get_client_ip
from app.schemas.company import (
    CompanyCreate,
    CompanyMemberAdd,
    CompanyMemberResponse,
    CompanyResponse,
    CompanyUpdate,
)
from app.services.company_service import CompanyService

router = APIRouter()

require_manage_company_users = require_permission(Permission.MANAGE_COMPANY_USERS, Permission.MANAGE_USERS)


def _company(data: dict) -> dict:
    return CompanyResponse.model_validate(data).model_dump()


@router.get("/")
async def list_companies(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Matches name, industry, city and country"),
    status_filter: Literal["all", "active", "inactive"] = Query("all", alias="status"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List companies with search and an active/inactive filter.
    """
    companies, total = await CompanyService(db).list_companies(page, limit, search, status_filter)
    return {
        "status": "success",
        "data": [_company(company) for company in companies],
        "pagination": pagination_meta(page, limit, total),
    }


@router.get("/{company_id}")
async def get_company(
    company_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"status": "success", "data": _company(await CompanyService(db).get_company(company_id))}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_company(
    request: Request,
    body: CompanyCreate,
    current_user: Principal = Depends(require_permission(Permission.CREATE_COMPANY, Permission.MANAGE_COMPANY)),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a company. The creator becomes its first member.
    """
    company = await CompanyService(db).create_company(
        current_user.id, body.model_dump(), get_client_ip(request)
    )
    return {"status": "success", "data": _company(company)}


@router.put("/{company_id}")
async def update_company(
    request: Request,
    company_id: UUID,
    body: CompanyUpdate,
    current_user: Principal = Depends(require_permission(Permission.EDIT_COMPANY, Permission.MANAGE_COMPANY)),
    db: AsyncSession = Depends(get_db),
):
    """
    Partially update a company; only fields present in the body change.
    """
    company = await CompanyService(db).update_company(
        company_id, current_user.id, body.model_dump(exclude_unset=True), get_client_ip(request)
    )
    return {"status": "success", "data": _company(company)}


@router.patch("/{company_id}/deactivate")
async def deactivate_company(
    request: Request,
    company_id: UUID,
    current_user: Principal = Depends(require_permission(Permission.DEACTIVATE_COMPANY, Permission.MANAGE_COMPANY)),
    db: AsyncSession = Depends(get_db),
):
    company = await CompanyService(db).set_active(company_id, current_user.id, False, get_client_ip(request))
    return {"status": "success", "data": _company(company), "message": "Company deactivated successfully"}


@router.patch("/{company_id}/activate")
async def activate_company(
    request: Request,
    company_id: UUID,
    current_user: Principal = Depends(require_permission(Permission.DEACTIVATE_COMPANY, Permission.MANAGE_COMPANY)),
    db: AsyncSession = Depends(get_db),
):
    company = await CompanyService(db).set_active(company_id, current_user.id, True, get_client_ip(request))
    return {"status": "success", "data": _company(company), "message": "Company activated successfully"}


@router.get("/{company_id}/users")
async def list_company_users(
    company_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List the members of a company. Members and admins only.
    """
    members = await CompanyService(db).list_members(company_id, current_user)
    return {
        "status": "success",
        "data": [CompanyMemberResponse.model_validate(member).model_dump() for member in members],
    }


@router.post("/{company_id}/users", status_code=status.HTTP_201_CREATED)
async def add_company_user(
    request: Request,
    company_id: UUID,
    body: CompanyMemberAdd,
    current_user: Principal = Depends(require_manage_company_users),
    db: AsyncSession = Depends(get_db),
):
    """
    Add an existing user to a company. Adding a current member changes nothing.
    """
    added = await CompanyService(db).add_member(
        company_id, body.user_id, current_user, body.role, get_client_ip(request)
    )
    message = "User added to company successfully" if added else "User is already a member of this company"
    return {"status": "success", "message": message}


@router.delete("/{company_id}/users/{user_id}")
async def remove_company_user(
    request: Request,
    company_id: UUID,
    user_id: UUID,
    current_user: Principal = Depends(require_manage_company_users),
    db: AsyncSession = Depends(get_db),
):
    await CompanyService(db).remove_member(company_id, user_id, current_user, get_client_ip(request))
    return {"status": "success", "message": "User removed from company successfully"}
