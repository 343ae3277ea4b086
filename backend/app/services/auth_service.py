"""
Authentication service for the job board.

This service owns the account lifecycle and the login flow:
credential check, two-factor challenge, token issuance, activation and
password reset.

Features:
- Registration in a single transaction (user, default role, empty profile)
- Activation by a single-purpose signed token
- Email-delivered one-time codes for every login
- Password reset with an opaque expiring token
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import ensure_aware, get_db_transaction, utcnow
from app.core.exceptions import BadRequestError, ConflictError, TokenError, UnauthorizedError
from app.core.logging import security_logger
from app.core.permissions import RoleName
from app.core.security import (
    create_access_token,
    create_activation_token,
    decode_token,
    generate_reset_token,
    get_password_hash,
    session_expiry_seconds,
    verify_password,
)
from app.models.profile import JobSeekerProfile
from app.models.user import User
from app.services.email_service import email_service
from app.services.rbac_service import RBACService
from app.services.two_factor import challenge_store

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


@dataclass
class StartedChallenge:
    challenge_id: str
    code: str
    expires_in_seconds: int


def public_user(user_id: Any, email: str, name: str, roles: List[str]) -> Dict[str, Any]:
    return {"id": str(user_id), "email": email, "name": name, "roles": list(roles)}


def issue_session(user_id: Any, email: str, name: str, roles: List[str], pre_activation: bool = False) -> Dict[str, Any]:
    """Sign a session token and build the token response body."""
    claims: Dict[str, Any] = {"sub": str(user_id), "email": email, "name": name, "roles": list(roles)}
    if pre_activation:
        claims["preActivation"] = True
    return {
        "token_type": "Bearer",
        "access_token": create_access_token(claims),
        "expires_in": session_expiry_seconds(),
        "user": public_user(user_id, email, name, roles),
    }


class AuthService:
    """Service for registration, login and password management."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.rbac = RBACService(db)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def email_available(self, email: str) -> bool:
        return await self.get_user_by_email(email) is None

    # Registration and activation

    async def register(self, first_name: str, last_name: str, email: str, password: str) -> Tuple[User, List[str]]:
        """
        Create an inactive account with the JOB_SEEKER role and an empty profile.

        Raises:
            ConflictError: the email is already registered (case-insensitive)
        """
        email = email.strip().lower()
        if await self.get_user_by_email(email) is not None:
            raise ConflictError("Email is already registered")

        try:
            async with get_db_transaction(self.db):
                user = User(
                    first_name=first_name.strip(),
                    last_name=last_name.strip(),
                    email=email,
                    password_hash=get_password_hash(password),
                    is_active=False,
                    email_verified=False,
                )
                self.db.add(user)
                await self.db.flush()
                await self.rbac.assign_role(user.id, RoleName.JOB_SEEKER.value)
                self.db.add(JobSeekerProfile(user_id=user.id))
        except IntegrityError:
            raise ConflictError("Email is already registered")

        await self.db.refresh(user)
        logger.info(f"Registered user {user.id}")
        await self.send_activation_email(user)
        return user, [RoleName.JOB_SEEKER.value]

    @staticmethod
    def activation_link(user: User) -> str:
        token = create_activation_token(user.id, user.email)
        return f"{settings.api_origin.rstrip('/')}/api/v1/auth/activate?token={token}"

    async def send_activation_email(self, user: User) -> None:
        try:
            await email_service.send_templated_email(
                to=user.email,
                template_key="registration_activation",
                data={
                    "user_full_name": user.full_name,
                    "activation_link": self.activation_link(user),
                },
            )
        except Exception as e:
            logger.warning(f"Activation email for user {user.id} not sent: {e}")

    async def activate(self, token: str) -> User:
        """
        Activate the account named by an activation token.

        Raises:
            BadRequestError: the token does not verify, is not an activation
                token, or names no account
        """
        try:
            payload = decode_token(token)
        except TokenError:
            raise BadRequestError("Invalid or expired token")

        subject = payload.get("sub")
        if payload.get("type") != "activation" or not isinstance(subject, str):
            raise BadRequestError("Invalid activation token")

        try:
            user_id = UUID(subject)
        except ValueError:
            raise BadRequestError("Invalid activation token")

        user = await self.db.get(User, user_id)
        if user is None:
            raise BadRequestError("Invalid activation token")

        user.is_active = True
        user.email_verified = True
        await self.db.commit()
        logger.info(f"Activated user {user.id}")
        return user

    # Login

    async def authenticate(self, email: str, password: str, ip_address: str = "unknown") -> Tuple[User, List[str]]:
        """
        Check credentials.

        Unknown email, inactive account, blocked account and wrong password
        all raise the same UnauthorizedError.
        """
        user = await self.get_user_by_email(email)
        reason = None
        if user is None:
            reason = "unknown_email"
        elif not verify_password(password, user.password_hash):
            reason = "wrong_password"
        elif not user.is_active:
            reason = "inactive"
        elif user.is_blocked:
            reason = "blocked"

        if reason:
            security_logger.log_login_attempt(email, False, ip_address, reason)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        roles = await self.rbac.get_user_roles(user.id)
        return user, roles

    async def start_two_factor(self, email: str, password: str, ip_address: str = "unknown") -> StartedChallenge:
        """Check credentials, open a challenge and email its code."""
        user, roles = await self.authenticate(email, password, ip_address)

        challenge_id, code, ttl = challenge_store.create(user.id, user.email, user.full_name, roles)
        security_logger.log_login_attempt(user.email, True, ip_address)
        security_logger.log_two_factor(user.email, "issued", challenge_id)
        if not settings.is_production:
            logger.info(f"2FA code for {user.email}: {code}")

        user.last_login = utcnow()
        await self.db.commit()

        try:
            await email_service.send_templated_email(
                to=user.email,
                template_key="auth_code",
                data={
                    "user_full_name": user.full_name,
                    "otp_code": code,
                    "otp_expires_minutes": max(1, ttl // 60),
                },
            )
        except Exception as e:
            logger.warning(f"Authentication code email to {user.email} not sent: {e}")

        return StartedChallenge(challenge_id=challenge_id, code=code, expires_in_seconds=ttl)

    def verify_two_factor(self, challenge_id: str, code: str) -> Dict[str, Any]:
        try:
            challenge = challenge_store.verify(challenge_id, code)
        except BadRequestError as e:
            security_logger.log_two_factor("", "expired" if e.message == "Challenge expired" else "unknown", challenge_id)
            raise
        except UnauthorizedError:
            security_logger.log_two_factor("", "rejected", challenge_id)
            raise

        security_logger.log_two_factor(challenge.email, "verified", challenge_id)
        return issue_session(challenge.user_id, challenge.email, challenge.name, challenge.roles)

    # Password reset

    async def forgot_password(self, email: str) -> Optional[str]:
        """Store a reset token for a known email; returns it, or None when unknown."""
        user = await self.get_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for an unknown email")
            return None

        token = generate_reset_token()
        now = utcnow()
        user.password_reset_token = token
        user.password_reset_requested_at = now
        user.password_reset_expires_at = now + timedelta(minutes=settings.password_reset_expire_minutes)
        await self.db.commit()
        logger.info(f"Password reset token issued for user {user.id}")
        return token

    async def reset_password(self, token: str, password: str) -> None:
        result = await self.db.execute(select(User).where(User.password_reset_token == str(token)))
        user = result.scalar_one_or_none()
        expires_at = ensure_aware(user.password_reset_expires_at) if user else None
        if user is None or expires_at is None or expires_at < utcnow():
            raise BadRequestError("Invalid or expired reset token")

        user.password_hash = get_password_hash(password)
        user.password_reset_token = None
        user.password_reset_expires_at = None
        user.password_reset_requested_at = None
        await self.db.commit()
        logger.info(f"Password reset for user {user.id}")
