"""
Roles and permissions known to the application.

Permissions are checked as a capability set: a user holds the union of the
permissions granted to their roles plus any granted to them directly.
"""

import enum
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Set
from uuid import UUID


class Permission(str, enum.Enum):
    """Permission names stored in the ``permissions`` table."""

    # Companies
    CREATE_COMPANY = "CREATE_COMPANY"
    EDIT_COMPANY = "EDIT_COMPANY"
    DEACTIVATE_COMPANY = "DEACTIVATE_COMPANY"
    MANAGE_COMPANY = "MANAGE_COMPANY"
    MANAGE_COMPANY_USERS = "MANAGE_COMPANY_USERS"

    # Jobs
    CREATE_JOB = "CREATE_JOB"
    EDIT_JOB = "EDIT_JOB"
    DELETE_JOB = "DELETE_JOB"

    # Applications
    APPLY_JOB = "APPLY_JOB"
    VIEW_APPLICATIONS = "VIEW_APPLICATIONS"
    UPDATE_APPLICATION_STATUS = "UPDATE_APPLICATION_STATUS"

    # Users
    MANAGE_USERS = "MANAGE_USERS"

    @property
    def category(self) -> str:
        name = self.value
        if "COMPANY" in name:
            return "company"
        if name.endswith("JOB"):
            return "job"
        if "APPLICATION" in name:
            return "application"
        return "user"


class RoleName(str, enum.Enum):
    """Built-in roles."""

    JOB_SEEKER = "JOB_SEEKER"
    EMPLOYER = "EMPLOYER"
    HR = "HR"
    HR_MANAGER = "HR_MANAGER"
    ADMIN = "ADMIN"


SYSTEM_ROLES: FrozenSet[str] = frozenset(role.value for role in RoleName)

DEFAULT_ROLE_PERMISSIONS: Dict[RoleName, FrozenSet[Permission]] = {
    RoleName.JOB_SEEKER: frozenset({Permission.APPLY_JOB}),
    RoleName.EMPLOYER: frozenset({
        Permission.CREATE_COMPANY,
        Permission.EDIT_COMPANY,
        Permission.CREATE_JOB,
        Permission.EDIT_JOB,
        Permission.DELETE_JOB,
        Permission.VIEW_APPLICATIONS,
        Permission.UPDATE_APPLICATION_STATUS,
    }),
    RoleName.HR: frozenset({
        Permission.VIEW_APPLICATIONS,
        Permission.UPDATE_APPLICATION_STATUS,
    }),
    RoleName.HR_MANAGER: frozenset({
        Permission.CREATE_COMPANY,
        Permission.EDIT_COMPANY,
        Permission.MANAGE_COMPANY,
        Permission.MANAGE_COMPANY_USERS,
        Permission.VIEW_APPLICATIONS,
        Permission.UPDATE_APPLICATION_STATUS,
    }),
    RoleName.ADMIN: frozenset(Permission),
}


def to_permissions(names: Iterable[str]) -> Set[Permission]:
    """Map stored permission names to the enum, ignoring custom ones."""
    result = set()
    for name in names:
        try:
            result.add(Permission(name))
        except ValueError:
            continue
    return result


@dataclass
class Principal:
    """The authenticated caller: identity plus roles and effective permissions."""

    id: UUID
    email: str
    name: str
    roles: List[str] = field(default_factory=list)
    permissions: Set[str] = field(default_factory=set)

    def has_role(self, *roles: str) -> bool:
        wanted = {r.value if isinstance(r, RoleName) else r for r in roles}
        return bool(wanted & set(self.roles))

    def has_permission(self, *permissions: str) -> bool:
        wanted = {p.value if isinstance(p, Permission) else p for p in permissions}
        return bool(wanted & self.permissions)

    @property
    def is_admin(self) -> bool:
        return RoleName.ADMIN.value in self.roles
