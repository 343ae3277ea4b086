"""
File handling utilities for uploaded documents.

Files live under the configured upload directory, split into ``images`` and
``documents`` sub-directories, and are served back at ``/uploads/...``.
"""

import os
from pathlib import Path
from typing import Iterable, Tuple

import aiofiles
import aiofiles.os

from app.core.config import settings

UPLOAD_SUBDIRS = ("images", "documents")
UPLOAD_URL_PREFIX = "/uploads"


def upload_root() -> Path:
    return Path(settings.upload_dir)


def ensure_upload_dirs() -> None:
    """Create the upload directory tree if it is missing."""
    for subdir in UPLOAD_SUBDIRS:
        os.makedirs(upload_root() / subdir, exist_ok=True)


def storage_subdir(mime_type: str) -> str:
    """Images go to ``images``, everything else to ``documents``."""
    return "images" if (mime_type or "").startswith("image/") else "documents"


def is_allowed_mime_type(mime_type: str, allowed: Iterable[str]) -> bool:
    return (mime_type or "").lower() in {m.lower() for m in allowed}


async def save_file_async(file_content: bytes, filename: str, subdir: str) -> Tuple[str, str]:
    """
    Asynchronously save file content under the upload directory.

    Args:
        file_content: Binary content of the file
        filename: Name for the saved file
        subdir: ``images`` or ``documents``

    Returns:
        (path on disk, public URL)
    """
    directory = upload_root() / subdir
    os.makedirs(directory, exist_ok=True)
    file_path = directory / filename

    try:
        async with aiofiles.open(file_path, 'wb') as f:
            await f.write(file_content)
    except OSError as e:
        raise IOError(f"Failed to save file: {e}") from e

    return str(file_path), f"{UPLOAD_URL_PREFIX}/{subdir}/{filename}"


async def delete_file(file_path: str) -> bool:
    """
    Delete a file from the filesystem.

    Returns:
        True if the file was deleted, False if it was already gone
    """
    try:
        await aiofiles.os.remove(file_path)
        return True
    except FileNotFoundError:
        return False
