"""
Role and permission management, mounted under ``/admin/rbac``.

Every route needs MANAGE_USERS; every change is written to the admin log.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_permission
from app.core.database import get_db
from app.core.permissions import Permission, Principal
from app.core.security import get_client_ip
from app.models.base import as_dict
from app.schemas.admin import (
    PermissionCreate,
    RoleCreate,
    RolePermissionsUpdate,
    RoleUpdate,
    UserPermissionGrant,
    UserRolesUpdate,
)
from app.services.audit_service import audit_service
from app.services.rbac_service import RBACService

router = APIRouter()

require_manage_users = require_permission(Permission.MANAGE_USERS)


async def _log(
    request: Request,
    admin: Principal,
    action: str,
    target_type: str,
    target_id: Any,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    await audit_service.log_admin_action(
        admin_id=admin.id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
        ip_address=get_client_ip(request),
    )


# Roles

@router.get("/roles")
async def list_roles(
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    return {"roles": await RBACService(db).list_roles()}


@router.post("/roles", status_code=status.HTTP_201_CREATED)
async def create_role(
    request: Request,
    body: RoleCreate,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    role = await RBACService(db).create_role(body.name, body.description)
    await _log(request, current_user, "CREATE_ROLE", "role", role.id, {"name": role.name})
    return {"role": as_dict(role)}


@router.put("/roles/{role_id}")
async def update_role(
    request: Request,
    role_id: UUID,
    body: RoleUpdate,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    role = await RBACService(db).update_role(role_id, body.name, body.description)
    await _log(request, current_user, "UPDATE_ROLE", "role", role.id, body.model_dump(exclude_unset=True))
    return {"role": as_dict(role)}


@router.delete("/roles/{role_id}")
async def delete_role(
    request: Request,
    role_id: UUID,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a custom role. Built-in roles cannot be deleted.
    """
    await RBACService(db).delete_role(role_id)
    await _log(request, current_user, "DELETE_ROLE", "role", role_id)
    return {"message": "Role deleted successfully"}


@router.get("/roles/{role_id}/permissions")
async def get_role_permissions(
    role_id: UUID,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    return {"role_id": role_id, "permissions": await RBACService(db).get_role_permissions(role_id)}


@router.put("/roles/{role_id}/permissions")
async def set_role_permissions(
    request: Request,
    role_id: UUID,
    body: RolePermissionsUpdate,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace the permissions granted by a role.
    """
    permissions = await RBACService(db).set_role_permissions(role_id, body.permissions)
    await _log(request, current_user, "SET_ROLE_PERMISSIONS", "role", role_id, {"permissions": permissions})
    return {"role_id": role_id, "permissions": permissions}


# Permissions

@router.get("/permissions")
async def list_permissions(
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    permissions = await RBACService(db).list_permissions()
    return {"permissions": [as_dict(p) for p in permissions]}


@router.post("/permissions", status_code=status.HTTP_201_CREATED)
async def create_permission(
    request: Request,
    body: PermissionCreate,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    permission = await RBACService(db).create_permission(body.name, body.description, body.category)
    await _log(request, current_user, "CREATE_PERMISSION", "permission", permission.id, {"name": permission.name})
    return {"permission": as_dict(permission)}


# User grants

@router.get("/users/{user_id}/roles")
async def get_user_roles(
    user_id: UUID,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    return {"user_id": user_id, "roles": await RBACService(db).get_user_roles(user_id)}


@router.put("/users/{user_id}/roles")
async def set_user_roles(
    request: Request,
    user_id: UUID,
    body: UserRolesUpdate,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace a user's roles.
    """
    roles = await RBACService(db).set_user_roles(user_id, body.roles)
    await _log(request, current_user, "SET_USER_ROLES", "user", user_id, {"roles": roles})
    return {"user_id": user_id, "roles": roles}


@router.get("/users/{user_id}/permissions")
async def get_user_permissions(
    user_id: UUID,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    """
    Effective permissions: role grants plus direct grants.
    """
    rbac = RBACService(db)
    return {
        "user_id": user_id,
        "permissions": sorted(await rbac.get_user_permissions(user_id)),
        "direct_permissions": await rbac.get_direct_permissions(user_id),
    }


@router.post("/users/{user_id}/permissions", status_code=status.HTTP_201_CREATED)
async def grant_user_permission(
    request: Request,
    user_id: UUID,
    body: UserPermissionGrant,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    name = body.permission.strip().upper()
    await RBACService(db).grant_user_permission(user_id, name, current_user.id)
    await _log(request, current_user, "GRANT_PERMISSION", "user", user_id, {"permission": name})
    return {"message": "Permission granted", "user_id": user_id, "permission": name}


@router.delete("/users/{user_id}/permissions/{permission_name}")
async def revoke_user_permission(
    request: Request,
    user_id: UUID,
    permission_name: str,
    current_user: Principal = Depends(require_manage_users),
    db: AsyncSession = Depends(get_db),
):
    name = permission_name.strip().upper()
    await RBACService(db).revoke_user_permission(user_id, name)
    await _log(request, current_user, "REVOKE_PERMISSION", "user", user_id, {"permission": name})
    return {"message": "Permission revoked", "user_id": user_id, "permission": name}
