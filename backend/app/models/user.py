"""
User model for the job board.
Handles authentication state, activation, blocking and password reset.
"""

from sqlalchemy import Boolean, Column, DateTime, String

from app.models.base import Base, TimestampMixin, uuid_pk


class User(TimestampMixin, Base):
    """
    User model with authentication and account-state information.
    """
    __tablename__ = "users"

    id = uuid_pk()
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)

    # Authentication
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Blocking
    is_blocked = Column(Boolean, default=False, nullable=False)
    blocked_at = Column(DateTime(timezone=True), nullable=True)
    block_reason = Column(String(500), nullable=True)

    # Password reset
    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires_at = Column(DateTime(timezone=True), nullable=True)
    password_reset_requested_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"

    @property
    def full_name(self) -> str:
        """Get the user's full name."""
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def can_login(self) -> bool:
        return bool(self.is_active) and not self.is_blocked

    def to_dict(self) -> dict:
        """Convert user to dictionary (excluding sensitive data)."""
        return {
            "id": str(self.id),
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "is_active": self.is_active,
            "is_blocked": self.is_blocked,
            "blocked_at": self.blocked_at,
            "block_reason": self.block_reason,
            "email_verified": self.email_verified,
            "last_login": self.last_login,
            "created_at": self.created_at,
        }
