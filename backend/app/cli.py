"""
Admin account management from the command line.

Bootstraps the first administrator and manages the ADMIN role on existing
accounts without going through the HTTP API:

    hr-admin create -e admin@example.com -f Ada -l Admin
    hr-admin promote -e someone@example.com
    hr-admin list-admins
"""

import asyncio
import logging
import sys
from typing import List, Optional

import click
from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select

from app.core.database import db_manager, get_db_transaction
from app.core.logging import setup_logging
from app.core.permissions import RoleName
from app.core.security import get_password_hash
from app.models.rbac import Role, UserRole
from app.models.user import User
from app.schemas.common import validate_password_strength
from app.services.rbac_service import RBACService

logger = logging.getLogger(__name__)


class AdminUserManager:
    """Creates administrators and moves the ADMIN role between accounts."""

    @staticmethod
    def normalize_email(email: str) -> str:
        try:
            return validate_email(email.strip(), check_deliverability=False).normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email: {e}") from e

    @staticmethod
    def check_password(password: str) -> str:
        return validate_password_strength(password or "")

    async def prepare(self) -> None:
        """Connect, create missing tables and seed the built-in roles."""
        await db_manager.initialize()
        await db_manager.create_all_tables()
        async with get_db_transaction() as session:
            await RBACService(session).seed_defaults()

    async def create_admin_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
    ) -> User:
        email = self.normalize_email(email)
        self.check_password(password)

        async with get_db_transaction() as session:
            if await self._find(session, email) is not None:
                raise ValueError(f"User with email {email} already exists")

            user = User(
                email=email,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                phone=phone,
                password_hash=get_password_hash(password),
                is_active=True,
                email_verified=True,
            )
            session.add(user)
            await session.flush()
            await RBACService(session).assign_role(user.id, RoleName.ADMIN.value)

        logger.info(f"Admin user created: {email}")
        return user

    async def update_user_password(self, email: str, new_password: str) -> None:
        self.check_password(new_password)
        async with get_db_transaction() as session:
            user = await self._require(session, email)
            user.password_hash = get_password_hash(new_password)
            user.password_reset_token = None
            user.password_reset_expires_at = None
        logger.info(f"Password updated for user: {email}")

    async def promote_to_admin(self, email: str) -> None:
        async with get_db_transaction() as session:
            user = await self._require(session, email)
            await RBACService(session).assign_role(user.id, RoleName.ADMIN.value)
            user.is_active = True
            user.email_verified = True
        logger.info(f"User promoted to admin: {email}")

    async def revoke_admin(self, email: str) -> None:
        async with get_db_transaction() as session:
            user = await self._require(session, email)
            rbac = RBACService(session)
            roles = await rbac.get_user_roles(user.id)
            if RoleName.ADMIN.value not in roles:
                raise ValueError(f"User {email} is not an admin")
            if len(await self._admin_ids(session)) == 1:
                raise ValueError("Cannot revoke the last admin")
            await rbac.set_user_roles(user.id, [r for r in roles if r != RoleName.ADMIN.value])
        logger.info(f"Admin privileges revoked for user: {email}")

    async def list_admin_users(self) -> List[User]:
        async with get_db_transaction() as session:
            ids = await self._admin_ids(session)
            if not ids:
                return []
            result = await session.execute(select(User).where(User.id.in_(ids)).order_by(User.created_at))
            return list(result.scalars())

    async def close(self) -> None:
        await db_manager.close()

    @staticmethod
    async def _find(session, email: str) -> Optional[User]:
        result = await session.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def _require(self, session, email: str) -> User:
        user = await self._find(session, email)
        if user is None:
            raise ValueError(f"User {email} not found")
        return user

    @staticmethod
    async def _admin_ids(session) -> list:
        result = await session.execute(
            select(UserRole.user_id)
            .join(Role, Role.id == UserRole.role_id)
            .where(Role.name == RoleName.ADMIN.value)
        )
        return list(result.scalars())


def _run(action, level: int = logging.INFO) -> None:
    """Run one manager coroutine with logging set up and the engine closed afterwards."""
    setup_logging()
    logging.getLogger().setLevel(level)
    manager = AdminUserManager()

    async def _main():
        try:
            await manager.prepare()
            return await action(manager)
        finally:
            await manager.close()

    try:
        return asyncio.run(_main())
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)


def _password_ok(ctx, param, value):
    try:
        return AdminUserManager.check_password(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
def cli():
    """Admin user management for the HR platform."""


@cli.command()
@click.option('--email', '-e', prompt=True, help='Admin email address')
@click.option('--first-name', '-f', prompt=True, help='First name')
@click.option('--last-name', '-l', prompt=True, help='Last name')
@click.option('--phone', '-p', help='Phone number (optional)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True,
              callback=_password_ok, help='Admin password')
def create(email: str, first_name: str, last_name: str, phone: Optional[str], password: str):
    """Create a new admin user."""
    user = _run(lambda m: m.create_admin_user(email, password, first_name, last_name, phone))
    click.secho("Admin user created", fg="green")
    click.echo(f"Email: {user.email}")
    click.echo(f"Name:  {user.full_name}")
    click.echo(f"ID:    {user.id}")


@cli.command()
@click.option('--email', '-e', prompt=True, help='User email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True,
              callback=_password_ok, help='New password')
def change_password(email: str, password: str):
    """Change password for an existing user."""
    _run(lambda m: m.update_user_password(email, password))
    click.secho(f"Password updated for {email}", fg="green")


@cli.command()
@click.option('--email', '-e', prompt=True, help='User email address')
def promote(email: str):
    """Give an existing user the ADMIN role."""
    _run(lambda m: m.promote_to_admin(email))
    click.secho(f"User {email} promoted to admin", fg="green")


@cli.command()
@click.option('--email', '-e', prompt=True, help='Admin email address')
def revoke(email: str):
    """Take the ADMIN role away from a user."""
    _run(lambda m: m.revoke_admin(email))
    click.secho(f"Admin privileges revoked for {email}", fg="green")


@cli.command()
def list_admins():
    """List all admin users."""
    users = _run(lambda m: m.list_admin_users(), level=logging.WARNING)
    if not users:
        click.echo("No admin users found")
        return

    click.echo(f"Admin users ({len(users)} found):")
    click.echo("-" * 90)
    click.echo(f"{'ID':<38} {'EMAIL':<30} {'NAME':<20}")
    click.echo("-" * 90)
    for user in users:
        click.echo(f"{str(user.id):<38} {user.email:<30} {user.full_name:<20}")


if __name__ == "__main__":
    cli()
