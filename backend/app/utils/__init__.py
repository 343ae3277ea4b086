"""
Utility functions package.

Usage:
    from app.utils.file_handling import save_file_async, delete_file
"""

from .file_handling import (
    UPLOAD_URL_PREFIX,
    delete_file,
    ensure_upload_dirs,
    is_allowed_mime_type,
    save_file_async,
    storage_subdir,
)

__all__ = [
    "UPLOAD_URL_PREFIX",
    "delete_file",
    "ensure_upload_dirs",
    "is_allowed_mime_type",
    "save_file_async",
    "storage_subdir",
]
