"""
Document service for uploaded files.

Handles validation, storage on local disk and the metadata rows for
personal documents (owned by a user) and company documents (owned by a
company and uploaded by one of its members).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.core.permissions import Principal
from app.core.security import generate_secure_filename, sanitize_filename
from app.models.company import Company
from app.models.document import Document
from app.services.company_service import CompanyService
from app.utils.file_handling import delete_file, is_allowed_mime_type, save_file_async, storage_subdir

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_TYPE = "general"


class DocumentService:
    """Service for document uploads and metadata."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _check(self, upload: Optional[UploadFile]) -> Tuple[UploadFile, str, bytes]:
        """Validate one upload and read its content without touching the disk."""
        if upload is None or not upload.filename:
            raise BadRequestError("No file uploaded")

        mime_type = (upload.content_type or "").lower()
        if not is_allowed_mime_type(mime_type, settings.allowed_mime_types):
            raise BadRequestError("Invalid file type")

        content = await upload.read()
        if len(content) > settings.max_file_size:
            raise BadRequestError("File too large")
        return upload, mime_type, content

    async def _write(self, checked: Tuple[UploadFile, str, bytes]) -> Dict[str, Any]:
        upload, mime_type, content = checked
        file_name = generate_secure_filename(upload.filename)
        file_path, file_url = await save_file_async(content, file_name, storage_subdir(mime_type))
        return {
            "file_name": file_name,
            "original_name": sanitize_filename(upload.filename),
            "file_size": len(content),
            "mime_type": mime_type,
            "file_path": file_path,
            "file_url": file_url,
        }

    async def _record(self, checked: List[Tuple[UploadFile, str, bytes]], build) -> List[Document]:
        """
        Write the checked files and commit one row per file.

        Files already written are removed again when a later write or the
        commit fails, so a failed request leaves nothing on disk.
        """
        stored: List[Dict[str, Any]] = []
        try:
            for item in checked:
                stored.append(await self._write(item))
            documents = [build(item) for item in stored]
            self.db.add_all(documents)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            for item in stored:
                await delete_file(item["file_path"])
            logger.warning(f"Discarded {len(stored)} stored file(s) after a failed upload")
            raise

        for document in documents:
            await self.db.refresh(document)
        return documents

    async def upload(
        self,
        owner_id: UUID,
        upload: Optional[UploadFile],
        document_type: Optional[str] = None,
        description: Optional[str] = None,
        is_primary: bool = False,
        company_id: Optional[UUID] = None,
    ) -> Document:
        """
        Store a file and record it.

        Personal documents are owned by ``owner_id``; company documents are
        owned by ``company_id`` and record ``owner_id`` as the uploader.
        """
        checked = await self._check(upload)
        document_type = document_type or DEFAULT_DOCUMENT_TYPE
        user_id = None if company_id else owner_id

        if is_primary:
            await self._clear_primary(document_type, user_id=user_id, company_id=company_id)

        [document] = await self._record([checked], lambda stored: Document(
            **stored,
            user_id=user_id,
            company_id=company_id,
            uploaded_by=owner_id,
            document_type=document_type,
            description=description,
            is_primary=is_primary,
        ))
        logger.info(f"Stored document {document.id} ({document.file_size_formatted}) for {company_id or owner_id}")
        return document

    async def upload_many(
        self,
        owner_id: UUID,
        uploads: List[UploadFile],
        document_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> List[Document]:
        uploads = [u for u in uploads or [] if u is not None and u.filename]
        if not uploads:
            raise BadRequestError("No files uploaded")
        if len(uploads) > settings.max_files_per_request:
            raise BadRequestError(f"Too many files; at most {settings.max_files_per_request} per request")

        # Every file must pass before anything is written
        checked = [await self._check(upload) for upload in uploads]
        return await self._record(checked, lambda stored: Document(
            **stored,
            user_id=owner_id,
            uploaded_by=owner_id,
            document_type=document_type or DEFAULT_DOCUMENT_TYPE,
            description=description,
            is_primary=False,
        ))

    async def list_user_documents(self, user_id: UUID, document_type: Optional[str] = None) -> List[Document]:
        query = select(Document).where(Document.user_id == user_id)
        if document_type:
            query = query.where(Document.document_type == document_type)
        result = await self.db.execute(query.order_by(Document.is_primary.desc(), Document.created_at.desc()))
        return list(result.scalars())

    async def get_document(self, document_id: UUID, user_id: UUID) -> Document:
        result = await self.db.execute(
            select(Document).where(Document.id == document_id, Document.user_id == user_id)
        )
        document = result.scalar_one_or_none()
        if document is None:
            raise NotFoundError("Document not found")
        return document

    async def update_document(self, document_id: UUID, user_id: UUID, changes: Dict[str, Any]) -> Document:
        document = await self.get_document(document_id, user_id)
        for field in ("document_type", "description"):
            if field in changes:
                setattr(document, field, changes[field])
        await self.db.commit()
        await self.db.refresh(document)
        return document

    async def delete_document(self, document_id: UUID, user_id: UUID) -> None:
        document = await self.get_document(document_id, user_id)
        file_path = document.file_path
        await self.db.delete(document)
        await self.db.commit()

        if not await delete_file(file_path):
            logger.warning(f"File for document {document_id} was already missing: {file_path}")

    async def set_primary(self, document_id: UUID, user_id: UUID, document_type: str) -> Document:
        """Make one document the primary for ``document_type``."""
        document = await self.get_document(document_id, user_id)
        await self._clear_primary(document_type, user_id=user_id)
        document.document_type = document_type
        document.is_primary = True
        await self.db.commit()
        await self.db.refresh(document)
        return document

    # Company documents

    async def require_company_access(self, company_id: UUID, actor: Principal) -> Company:
        company = await self.db.get(Company, company_id)
        if company is None:
            raise NotFoundError("Company not found")
        if not actor.is_admin and not await CompanyService(self.db).is_member(company_id, actor.id):
            raise ForbiddenError("You do not have access to this company")
        return company

    async def list_company_documents(self, company_id: UUID, actor: Principal) -> List[Document]:
        await self.require_company_access(company_id, actor)
        result = await self.db.execute(
            select(Document).where(Document.company_id == company_id).order_by(Document.created_at.desc())
        )
        return list(result.scalars())

    async def _clear_primary(
        self,
        document_type: str,
        user_id: Optional[UUID] = None,
        company_id: Optional[UUID] = None,
    ) -> None:
        stmt = update(Document).where(Document.document_type == document_type, Document.is_primary.is_(True))
        if company_id is not None:
            stmt = stmt.where(Document.company_id == company_id)
        else:
            stmt = stmt.where(Document.user_id == user_id)
        await self.db.execute(stmt.values(is_primary=False).execution_options(synchronize_session="fetch"))
