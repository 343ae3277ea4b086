"""
Job Board - Main Application Package

This package contains the FastAPI backend for a job board and HR management
application: accounts with email activation and two-factor login, companies,
jobs, applications, job seeker profiles, documents, notifications and an
administration surface with roles and permissions.

Package Structure:
- api/: REST API endpoints and route handlers
- core/: Core infrastructure (config, security, database, logging, errors)
- models/: SQLAlchemy database models
- schemas/: Pydantic schemas for request/response validation
- services/: Business logic services
- utils/: File storage helpers

Usage:
    from app.main import app
    from app.core import get_settings, get_db
"""

# Package metadata
__version__ = "1.0.0"
__title__ = "Job Board"
__description__ = "Job board and HR management backend"
