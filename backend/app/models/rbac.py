"""
Role and permission tables.

Roles are granted permissions through ``role_permissions``; users hold roles
through ``user_roles`` and may also hold permissions directly through
``user_permissions``.
"""

from sqlalchemy import Boolean, Column, ForeignKey, String, UniqueConstraint, Uuid

from app.models.base import Base, TimestampMixin, uuid_pk


class Role(TimestampMixin, Base):
    __tablename__ = "roles"

    id = uuid_pk()
    name = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True)
    is_system = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Role(name='{self.name}')>"


class PermissionRecord(TimestampMixin, Base):
    """A row in ``permissions``; names of built-ins match app.core.permissions.Permission."""
    __tablename__ = "permissions"

    id = uuid_pk()
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True)
    category = Column(String(50), nullable=True)


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (UniqueConstraint("role_id", "permission_id"),)

    id = uuid_pk()
    role_id = Column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False)


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id"),)

    id = uuid_pk()
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)


class UserPermission(TimestampMixin, Base):
    """Permission granted to a single user outside of their roles."""
    __tablename__ = "user_permissions"
    __table_args__ = (UniqueConstraint("user_id", "permission_id"),)

    id = uuid_pk()
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False)
    granted_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
