"""
Logging configuration for the Job Board API.

This module provides structured logging, file rotation, request context
propagation and security event logging.

Features:
- Structured JSON logging for production
- Colored console logging for development
- Log rotation via RotatingFileHandler
- Request id / user id context on every record
- Security event logging (logins, 2FA, permission denials)
"""

import json
import logging
import logging.handlers
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from app.core.config import get_settings

# Get settings
settings = get_settings()

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message',
}


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data['request_id'] = request_id

        user_id = user_id_var.get()
        if user_id:
            log_data['user_id'] = user_id

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': traceback.format_exception(*record.exc_info)
            }

        if self.include_extra:
            for key, value in record.__dict__.items():
                if key in _RESERVED_ATTRS or key in log_data:
                    continue
                try:
                    # Only include JSON serializable values
                    json.dumps(value)
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

        return json.dumps(log_data, ensure_ascii=False)


class ColoredConsoleFormatter(logging.Formatter):
    """Colored console formatter for development."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors for console output."""
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        log_message = (
            f"{color}[{timestamp}] {record.levelname:8s}{reset} "
            f"| {record.name:20s} | {record.getMessage()}"
        )

        request_id = request_id_var.get()
        if request_id:
            log_message += f" | req_id: {request_id[:8]}"

        if record.exc_info:
            log_message += f"\n{self.formatException(record.exc_info)}"

        return log_message


class RequestFilter(logging.Filter):
    """Filter to add request context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = request_id_var.get()
        if request_id:
            record.request_id = request_id

        user_id = user_id_var.get()
        if user_id:
            record.user_id = user_id

        return True


class SecurityLogger:
    """Logger for security events."""

    def __init__(self, logger_name: str = "security"):
        self.logger = logging.getLogger(logger_name)

    def log_login_attempt(
        self,
        email: str,
        success: bool,
        ip_address: str,
        reason: Optional[str] = None
    ):
        """Log login attempt."""
        level = logging.INFO if success else logging.WARNING
        message = "Login successful" if success else "Login failed"

        self.logger.log(
            level,
            message,
            extra={
                'event_type': 'login_attempt',
                'email': email,
                'success': success,
                'ip_address': ip_address,
                'reason': reason
            }
        )

    def log_two_factor(self, email: str, outcome: str, challenge_id: str):
        """Log the outcome of a two-factor step (issued, verified, expired, rejected)."""
        level = logging.INFO if outcome in ("issued", "verified") else logging.WARNING
        self.logger.log(
            level,
            f"Two-factor challenge {outcome}",
            extra={
                'event_type': 'two_factor',
                'email': email,
                'outcome': outcome,
                'challenge_id': challenge_id
            }
        )

    def log_permission_denied(
        self,
        user_id: str,
        resource: str,
        action: str,
        ip_address: str
    ):
        """Log permission denied events."""
        self.logger.warning(
            "Permission denied",
            extra={
                'event_type': 'permission_denied',
                'user_id': user_id,
                'resource': resource,
                'action': action,
                'ip_address': ip_address
            }
        )


def setup_logging() -> None:
    """Set up logging configuration based on environment."""

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, settings.log_level))

    if settings.is_production:
        console_formatter = StructuredFormatter()
    else:
        console_formatter = ColoredConsoleFormatter()

    console_handler.setFormatter(console_formatter)
    console_handler.addFilter(RequestFilter())
    root_logger.addHandler(console_handler)

    if settings.log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                filename=settings.log_file,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(getattr(logging, settings.log_level))
            file_handler.setFormatter(StructuredFormatter())
            file_handler.addFilter(RequestFilter())
            root_logger.addHandler(file_handler)
        except OSError as e:
            logging.error(f"Failed to setup file logging: {e}")

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    if settings.is_production:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info(f"Logging initialized - Level: {settings.log_level}")


def set_request_context(request_id: str, user_id: Optional[str] = None) -> None:
    """
    Set request context for logging.

    Args:
        request_id: Unique request identifier
        user_id: User ID (if authenticated)
    """
    request_id_var.set(request_id)
    if user_id:
        user_id_var.set(user_id)


def clear_request_context() -> None:
    """Clear request context."""
    request_id_var.set(None)
    user_id_var.set(None)


security_logger = SecurityLogger()
