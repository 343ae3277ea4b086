"""
Core module for the Job Board API.

Configuration, database, security, logging and error primitives shared by
every layer.

Usage:
    from app.core import get_settings, get_db
    from app.core.security import create_access_token, verify_password
    from app.core.database import DatabaseManager, get_db_transaction
"""

from .config import Settings, get_settings, settings
from .database import (
    Base,
    DatabaseManager,
    db_manager,
    get_db,
    get_db_session,
    get_db_transaction,
    init_db,
    close_db,
    check_db_health,
    paginate_query,
    count_query_results,
    pagination_meta,
)
from .logging import setup_logging, security_logger

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    "settings",

    # Database
    "Base",
    "DatabaseManager",
    "db_manager",
    "get_db",
    "get_db_session",
    "get_db_transaction",
    "init_db",
    "close_db",
    "check_db_health",
    "paginate_query",
    "count_query_results",
    "pagination_meta",

    # Logging
    "setup_logging",
    "security_logger",
]
