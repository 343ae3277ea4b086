"""
Application configuration settings for the Job Board API.

This module handles all configuration management including environment variables,
database settings, token lifetimes, mail transport and upload limits using
Pydantic Settings.

Features:
- Environment-based configuration
- Required secrets validated at process start
- Database connection settings
- Token expiry strings (parsed by app.core.security)
- Email (SMTP) settings
- File upload and storage settings
"""

from functools import lru_cache
from typing import Annotated, Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_ALLOWED_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
]


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    """Application settings with validation and type checking."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="Human Resource System")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    api_v1_str: str = Field(default="/api/v1")
    api_origin: str = Field(default="http://localhost:8000")
    web_origin: Optional[str] = Field(default=None)

    # Security settings
    jwt_secret: str
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_in: str = Field(default="15m")
    activation_token_expires_in: str = Field(default="24h")
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    password_reset_expire_minutes: int = Field(default=60)
    two_factor_ttl_seconds: int = Field(default=300)

    # CORS settings
    cors_origins: Annotated[List[str], NoDecode] = Field(default=["*"])
    cors_credentials: bool = Field(default=True)

    # Database settings
    database_url: str
    database_pool_size: int = Field(default=10)
    database_max_overflow: int = Field(default=20)
    database_pool_timeout: int = Field(default=30)
    database_pool_recycle: int = Field(default=3600)
    database_echo: bool = Field(default=False)

    # File upload settings
    upload_dir: str = Field(default="uploads")
    max_file_size: int = Field(default=10 * 1024 * 1024)  # 10MB
    max_files_per_request: int = Field(default=5)
    allowed_mime_types: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_MIME_TYPES)
    )

    # Email settings
    email_host: str = Field(default="")
    email_port: int = Field(default=587)
    email_secure: Optional[bool] = Field(default=None)
    email_user: str = Field(default="")
    email_password: str = Field(default="")
    email_from: str = Field(default="")
    support_email: str = Field(default="")
    email_timeout: int = Field(default=20)

    # Rate limiting settings
    rate_limit_enabled: bool = Field(default=True)
    auth_rate_limit: str = Field(default="20/minute")

    # Logging settings
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    log_max_bytes: int = Field(default=10485760)  # 10MB
    log_backup_count: int = Field(default=5)

    @field_validator("jwt_secret", "database_url", mode="before")
    @classmethod
    def validate_required(cls, v, info):
        """Reject blank values for required secrets."""
        if v is None or not str(v).strip():
            raise ValueError(f"{info.field_name.upper()} is required")
        return str(v).strip()

    @field_validator("cors_origins", "allowed_mime_types", mode="before")
    @classmethod
    def parse_csv_lists(cls, v):
        """Parse comma-separated lists."""
        return _split_csv(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment.lower() == "testing"

    @property
    def email_configured(self) -> bool:
        return bool(self.email_host and self.email_user and self.email_password)

    @property
    def smtp_use_ssl(self) -> bool:
        """Implicit TLS when EMAIL_SECURE is set, otherwise only on port 465."""
        if self.email_secure is None:
            return self.email_port == 465
        return self.email_secure

    @property
    def sender_address(self) -> str:
        return self.email_from.strip() or self.email_user

    @property
    def support_address(self) -> str:
        return self.support_email.strip() or self.email_from.strip()

    @property
    def database_config(self) -> Dict[str, Any]:
        """Get database configuration dictionary."""
        return {
            "url": self.database_url,
            "pool_size": self.database_pool_size,
            "max_overflow": self.database_max_overflow,
            "pool_timeout": self.database_pool_timeout,
            "pool_recycle": self.database_pool_recycle,
            "echo": self.database_echo or self.debug,
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings instance with all configuration loaded
    """
    return Settings()


# Global settings instance
settings = get_settings()
