"""
Role and permission management.

Covers seeding the built-in roles, resolving a user's effective permission
set, and the admin operations on roles, permissions and grants.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.core.permissions import DEFAULT_ROLE_PERMISSIONS, SYSTEM_ROLES, Permission, RoleName
from app.models.rbac import PermissionRecord, Role, RolePermission, UserPermission, UserRole
from app.models.user import User

logger = logging.getLogger(__name__)

ROLE_DESCRIPTIONS = {
    RoleName.JOB_SEEKER: "Looks for and applies to jobs",
    RoleName.EMPLOYER: "Publishes jobs and reviews applications",
    RoleName.HR: "Reviews applications",
    RoleName.HR_MANAGER: "Manages companies and the hiring team",
    RoleName.ADMIN: "Full access",
}


class RBACService:
    """Service for roles, permissions and their grants."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Seeding

    async def seed_defaults(self) -> None:
        """Create missing built-in permissions, roles and role grants. Safe to rerun."""
        permissions = {p.name: p for p in (await self.db.execute(select(PermissionRecord))).scalars()}
        for perm in Permission:
            if perm.value not in permissions:
                record = PermissionRecord(name=perm.value, category=perm.category)
                self.db.add(record)
                permissions[perm.value] = record

        roles = {r.name: r for r in (await self.db.execute(select(Role))).scalars()}
        for role_name in RoleName:
            if role_name.value not in roles:
                role = Role(name=role_name.value, description=ROLE_DESCRIPTIONS[role_name], is_system=True)
                self.db.add(role)
                roles[role_name.value] = role
        await self.db.flush()

        existing = {
            (row.role_id, row.permission_id)
            for row in (await self.db.execute(select(RolePermission))).scalars()
        }
        added = 0
        for role_name, granted in DEFAULT_ROLE_PERMISSIONS.items():
            role = roles[role_name.value]
            for perm in granted:
                key = (role.id, permissions[perm.value].id)
                if key not in existing:
                    self.db.add(RolePermission(role_id=role.id, permission_id=key[1]))
                    existing.add(key)
                    added += 1

        await self.db.commit()
        logger.info(f"RBAC defaults seeded ({added} new role grants)")

    # Lookups

    async def get_role_by_name(self, name: str) -> Optional[Role]:
        result = await self.db.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    async def get_permission_by_name(self, name: str) -> Optional[PermissionRecord]:
        result = await self.db.execute(select(PermissionRecord).where(PermissionRecord.name == name))
        return result.scalar_one_or_none()

    async def get_user_roles(self, user_id: UUID) -> List[str]:
        result = await self.db.execute(
            select(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.name)
        )
        return list(result.scalars())

    async def get_roles_for_users(self, user_ids: Iterable[UUID]) -> Dict[UUID, List[str]]:
        ids = list(user_ids)
        roles: Dict[UUID, List[str]] = {user_id: [] for user_id in ids}
        if not ids:
            return roles
        result = await self.db.execute(
            select(UserRole.user_id, Role.name)
            .join(Role, Role.id == UserRole.role_id)
            .where(UserRole.user_id.in_(ids))
            .order_by(Role.name)
        )
        for user_id, name in result:
            roles[user_id].append(name)
        return roles

    async def get_user_permissions(self, user_id: UUID) -> Set[str]:
        """Effective permissions: role grants plus direct grants."""
        via_roles = await self.db.execute(
            select(PermissionRecord.name)
            .join(RolePermission, RolePermission.permission_id == PermissionRecord.id)
            .join(UserRole, UserRole.role_id == RolePermission.role_id)
            .where(UserRole.user_id == user_id)
        )
        direct = await self.db.execute(
            select(PermissionRecord.name)
            .join(UserPermission, UserPermission.permission_id == PermissionRecord.id)
            .where(UserPermission.user_id == user_id)
        )
        return set(via_roles.scalars()) | set(direct.scalars())

    async def get_direct_permissions(self, user_id: UUID) -> List[str]:
        result = await self.db.execute(
            select(PermissionRecord.name)
            .join(UserPermission, UserPermission.permission_id == PermissionRecord.id)
            .where(UserPermission.user_id == user_id)
            .order_by(PermissionRecord.name)
        )
        return list(result.scalars())

    async def user_ids_with_permission(self, permission: str) -> List[UUID]:
        """Active, unblocked users holding ``permission`` by role or directly."""
        via_roles = (
            select(UserRole.user_id)
            .join(RolePermission, RolePermission.role_id == UserRole.role_id)
            .join(PermissionRecord, PermissionRecord.id == RolePermission.permission_id)
            .where(PermissionRecord.name == permission)
        )
        direct = (
            select(UserPermission.user_id)
            .join(PermissionRecord, PermissionRecord.id == UserPermission.permission_id)
            .where(PermissionRecord.name == permission)
        )
        result = await self.db.execute(
            select(User.id).where(
                User.id.in_(via_roles.union(direct)),
                User.is_active.is_(True),
                User.is_blocked.is_(False),
            )
        )
        return list(result.scalars())

    # Grants

    async def assign_role(self, user_id: UUID, role_name: str) -> None:
        """Give a user a role; the caller owns the transaction."""
        role = await self.get_role_by_name(role_name)
        if role is None:
            raise NotFoundError(f"Role {role_name} not found")
        exists = await self.db.execute(
            select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role_id == role.id)
        )
        if exists.scalar_one_or_none() is None:
            self.db.add(UserRole(user_id=user_id, role_id=role.id))
            await self.db.flush()

    async def set_user_roles(self, user_id: UUID, role_names: List[str]) -> List[str]:
        await self._require_user(user_id)
        roles = await self._resolve_roles(role_names)
        await self.db.execute(delete(UserRole).where(UserRole.user_id == user_id))
        for role in roles:
            self.db.add(UserRole(user_id=user_id, role_id=role.id))
        await self.db.commit()
        return sorted(role.name for role in roles)

    async def grant_user_permission(self, user_id: UUID, permission_name: str, granted_by: UUID) -> None:
        await self._require_user(user_id)
        permission = await self.get_permission_by_name(permission_name)
        if permission is None:
            raise NotFoundError(f"Permission {permission_name} not found")
        exists = await self.db.execute(
            select(UserPermission.id).where(
                UserPermission.user_id == user_id,
                UserPermission.permission_id == permission.id,
            )
        )
        if exists.scalar_one_or_none() is not None:
            raise ConflictError("Permission already granted")
        self.db.add(UserPermission(user_id=user_id, permission_id=permission.id, granted_by=granted_by))
        await self.db.commit()

    async def revoke_user_permission(self, user_id: UUID, permission_name: str) -> None:
        permission = await self.get_permission_by_name(permission_name)
        if permission is None:
            raise NotFoundError(f"Permission {permission_name} not found")
        result = await self.db.execute(
            delete(UserPermission).where(
                UserPermission.user_id == user_id,
                UserPermission.permission_id == permission.id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError("Permission grant not found")
        await self.db.commit()

    # Roles

    async def list_roles(self) -> List[dict]:
        roles = (await self.db.execute(select(Role).order_by(Role.name))).scalars().all()
        grants = await self.db.execute(
            select(RolePermission.role_id, PermissionRecord.name)
            .join(PermissionRecord, PermissionRecord.id == RolePermission.permission_id)
        )
        by_role: Dict[UUID, List[str]] = {}
        for role_id, name in grants:
            by_role.setdefault(role_id, []).append(name)
        return [
            {
                "id": role.id,
                "name": role.name,
                "description": role.description,
                "is_system": role.is_system,
                "permissions": sorted(by_role.get(role.id, [])),
            }
            for role in roles
        ]

    async def create_role(self, name: str, description: Optional[str]) -> Role:
        if await self.get_role_by_name(name) is not None:
            raise ConflictError("Role already exists")
        role = Role(name=name, description=description, is_system=False)
        self.db.add(role)
        await self.db.commit()
        await self.db.refresh(role)
        return role

    async def update_role(self, role_id: UUID, name: Optional[str], description: Optional[str]) -> Role:
        role = await self._require_role(role_id)
        if name and name != role.name:
            if role.is_system:
                raise BadRequestError("System roles cannot be renamed")
            if await self.get_role_by_name(name) is not None:
                raise ConflictError("Role already exists")
            role.name = name
        if description is not None:
            role.description = description
        await self.db.commit()
        await self.db.refresh(role)
        return role

    async def delete_role(self, role_id: UUID) -> None:
        role = await self._require_role(role_id)
        if role.is_system or role.name in SYSTEM_ROLES:
            raise BadRequestError("System roles cannot be deleted")
        await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role.id))
        await self.db.execute(delete(UserRole).where(UserRole.role_id == role.id))
        await self.db.delete(role)
        await self.db.commit()

    async def get_role_permissions(self, role_id: UUID) -> List[str]:
        await self._require_role(role_id)
        result = await self.db.execute(
            select(PermissionRecord.name)
            .join(RolePermission, RolePermission.permission_id == PermissionRecord.id)
            .where(RolePermission.role_id == role_id)
            .order_by(PermissionRecord.name)
        )
        return list(result.scalars())

    async def set_role_permissions(self, role_id: UUID, permission_names: List[str]) -> List[str]:
        await self._require_role(role_id)
        permissions = await self._resolve_permissions(permission_names)
        await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        for permission in permissions:
            self.db.add(RolePermission(role_id=role_id, permission_id=permission.id))
        await self.db.commit()
        return sorted(p.name for p in permissions)

    # Permissions

    async def list_permissions(self) -> List[PermissionRecord]:
        result = await self.db.execute(
            select(PermissionRecord).order_by(PermissionRecord.category, PermissionRecord.name)
        )
        return list(result.scalars())

    async def create_permission(self, name: str, description: Optional[str], category: Optional[str]) -> PermissionRecord:
        if await self.get_permission_by_name(name) is not None:
            raise ConflictError("Permission already exists")
        permission = PermissionRecord(name=name, description=description, category=category)
        self.db.add(permission)
        await self.db.commit()
        await self.db.refresh(permission)
        return permission

    # Helpers

    async def _require_role(self, role_id: UUID) -> Role:
        role = await self.db.get(Role, role_id)
        if role is None:
            raise NotFoundError("Role not found")
        return role

    async def _require_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def _resolve_roles(self, names: List[str]) -> List[Role]:
        wanted = {name.strip().upper() for name in names if name and name.strip()}
        if not wanted:
            return []
        found = (await self.db.execute(select(Role).where(Role.name.in_(wanted)))).scalars().all()
        missing = wanted - {role.name for role in found}
        if missing:
            raise BadRequestError(f"Unknown roles: {', '.join(sorted(missing))}")
        return list(found)

    async def _resolve_permissions(self, names: List[str]) -> List[PermissionRecord]:
        wanted = {name.strip().upper() for name in names if name and name.strip()}
        if not wanted:
            return []
        found = (
            await self.db.execute(select(PermissionRecord).where(PermissionRecord.name.in_(wanted)))
        ).scalars().all()
        missing = wanted - {p.name for p in found}
        if missing:
            raise BadRequestError(f"Unknown permissions: {', '.join(sorted(missing))}")
        return list(found)
