"""
Security utilities for the Job Board API.

This module provides password hashing, JWT token management and other
security-related helpers.

Features:
- Password hashing and verification with bcrypt (configurable cost)
- JWT session and activation token creation and validation
- Duration string parsing for token lifetimes ("15m", "24h", "3600")
- Security headers middleware
- Safe filename generation for uploads
"""

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import jwt
from fastapi import Request
from passlib.context import CryptContext
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import get_settings
from app.core.exceptions import TokenError

logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

DEFAULT_SESSION_EXPIRY = 15 * 60
DEFAULT_ACTIVATION_EXPIRY = 24 * 60 * 60

_DURATION_RE = re.compile(r"^(\d+)(ms|s|m|h|d|w|y)$")
_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
    "y": 365 * 24 * 60 * 60,
}


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to verify against

    Returns:
        True if password matches, False otherwise
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognized or corrupt hash
        return False


def parse_expires_in(value: Optional[str], default_seconds: int) -> int:
    """
    Parse a token lifetime into whole seconds.

    A bare integer is read as seconds; otherwise the value must look like
    ``<n><unit>`` with unit one of ms, s, m, h, d, w, y. Anything else
    falls back to ``default_seconds``.

    Args:
        value: Raw configuration value
        default_seconds: Lifetime used when the value is missing or unrecognized

    Returns:
        Lifetime in seconds (at least 1)
    """
    if value is None:
        return default_seconds

    raw = str(value).strip()
    if raw.isdigit():
        return max(1, int(raw))

    match = _DURATION_RE.match(raw)
    if not match:
        logger.warning(f"Unrecognized token expiry '{raw}', using default of {default_seconds}s")
        return default_seconds

    amount, unit = match.groups()
    return max(1, int(int(amount) * _UNIT_SECONDS[unit]))


def session_expiry_seconds() -> int:
    return parse_expires_in(settings.jwt_expires_in, DEFAULT_SESSION_EXPIRY)


def activation_expiry_seconds() -> int:
    return parse_expires_in(settings.activation_token_expires_in, DEFAULT_ACTIVATION_EXPIRY)


def _encode(payload: Dict[str, Any], expires_in: int) -> str:
    now = datetime.now(timezone.utc)
    to_encode = payload.copy()
    to_encode.update({"iat": now, "exp": now + timedelta(seconds=expires_in)})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT session token.

    Args:
        data: Claims to embed (sub, email, name, roles, optional preActivation)
        expires_delta: Token lifetime; defaults to JWT_EXPIRES_IN

    Returns:
        Encoded JWT token string
    """
    expires_in = int(expires_delta.total_seconds()) if expires_delta else session_expiry_seconds()
    payload = {**data, "type": "access"}
    if "sub" in payload:
        payload["sub"] = str(payload["sub"])
    return _encode(payload, expires_in)


def create_activation_token(user_id: Any, email: str) -> str:
    """
    Create a single-purpose account activation token.

    Args:
        user_id: ID of the account to activate
        email: Email address the token was issued for

    Returns:
        Encoded JWT tagged with ``type: "activation"``
    """
    payload = {"sub": str(user_id), "email": email, "type": "activation"}
    return _encode(payload, activation_expiry_seconds())


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT.

    Signature mismatch, malformed payload and expiry all raise the same
    TokenError so callers cannot tell which check failed.

    Args:
        token: Encoded JWT

    Returns:
        Decoded token payload
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as e:
        logger.debug(f"Token rejected: {type(e).__name__}")
        raise TokenError() from e

    if not isinstance(payload, dict):
        raise TokenError()
    return payload


def generate_reset_token() -> str:
    """Opaque password reset token stored on the user row."""
    return str(uuid.uuid4())


def generate_secure_filename(original_filename: str) -> str:
    """
    Generate a secure filename.

    Args:
        original_filename: Original filename

    Returns:
        uuid4-based filename keeping the original (sanitized) extension
    """
    extension = Path(original_filename or "").suffix.lower()
    extension = re.sub(r"[^a-z0-9.]", "", extension)[:16]
    return f"{uuid.uuid4()}{extension}"


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename by removing/replacing dangerous characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    sanitized = re.sub(r'[^\w\s.-]', '', filename or '')
    sanitized = re.sub(r'\s+', '_', sanitized)
    sanitized = re.sub(r'\.+', '.', sanitized)

    if not sanitized or sanitized == '.':
        sanitized = "file"

    if len(sanitized) > 255:
        name, ext = sanitized.rsplit('.', 1) if '.' in sanitized else (sanitized, '')
        max_name_length = 255 - len(ext) - 1 if ext else 255
        sanitized = name[:max_name_length] + ('.' + ext if ext else '')

    return sanitized


def get_client_ip(request: Request) -> str:
    """
    Get client IP address from request.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


class SecurityHeaders(BaseHTTPMiddleware):
    """Middleware adding the recommended security headers to every response."""

    @staticmethod
    def get_security_headers() -> Dict[str, str]:
        """
        Get recommended security headers.

        Returns:
            Dictionary of security headers
        """
        return {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "X-XSS-Protection": "1; mode=block",
            "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Permissions-Policy": (
                "accelerometer=(), camera=(), geolocation=(), "
                "gyroscope=(), magnetometer=(), microphone=(), "
                "payment=(), usb=()"
            )
        }

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        for header, value in self.get_security_headers().items():
            response.headers.setdefault(header, value)
        return response
