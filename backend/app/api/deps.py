"""
FastAPI dependencies for authentication and authorization.

Usage:
    @router.get("/protected")
    async def route(user: Principal = Depends(get_current_user)):
        ...

    @router.post("/companies", dependencies=[Depends(require_permission(Permission.CREATE_COMPANY))])
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ForbiddenError, TokenError, UnauthorizedError
from app.core.logging import security_logger, set_request_context, request_id_var
from app.core.permissions import Permission, Principal, RoleName
from app.core.security import decode_token, get_client_ip
from app.models.user import User
from app.services.rbac_service import RBACService

logger = logging.getLogger(__name__)

# auto_error is off so a missing header yields our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


async def _principal_from_token(token: str, db: AsyncSession) -> Principal:
    try:
        payload = decode_token(token)
    except TokenError:
        raise UnauthorizedError("Invalid or expired token")

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid or expired token")
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedError("Invalid or expired token")

    user = await db.get(User, user_id)
    if user is None or not user.can_login:
        raise UnauthorizedError("User not found or inactive")

    rbac = RBACService(db)
    return Principal(
        id=user.id,
        email=user.email,
        name=user.full_name,
        roles=await rbac.get_user_roles(user.id),
        permissions=await rbac.get_user_permissions(user.id),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """
    Resolve the bearer token to an active, unblocked user.

    Roles and permissions are read from the database on every request, so
    grants and revocations apply without waiting for the token to expire.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required")

    principal = await _principal_from_token(credentials.credentials, db)
    set_request_context(request_id_var.get() or "", str(principal.id))
    return principal


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[Principal]:
    """Like get_current_user, but anonymous callers get None instead of 401."""
    if credentials is None or not credentials.credentials:
        return None
    return await _principal_from_token(credentials.credentials, db)


def require_permission(*permissions: Permission):
    """Dependency factory: the caller must hold at least one of ``permissions``."""

    async def checker(request: Request, user: Principal = Depends(get_current_user)) -> Principal:
        if not user.has_permission(*permissions):
            security_logger.log_permission_denied(
                str(user.id),
                request.url.path,
                "|".join(p.value for p in permissions),
                get_client_ip(request),
            )
            raise ForbiddenError("Insufficient permissions")
        return user

    return checker


def require_roles(*roles: RoleName):
    """Dependency factory: the caller must hold at least one of ``roles``."""

    async def checker(request: Request, user: Principal = Depends(get_current_user)) -> Principal:
        if not user.has_role(*roles):
            security_logger.log_permission_denied(
                str(user.id),
                request.url.path,
                "role:" + "|".join(r.value for r in roles),
                get_client_ip(request),
            )
            raise ForbiddenError("Insufficient permissions")
        return user

    return checker
