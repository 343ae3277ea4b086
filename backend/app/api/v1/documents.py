from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.database import get_db
from app.core.permissions import Principal
from app.models.document import Document
from app.schemas.document import DocumentResponse, DocumentUpdate, PrimaryDocumentRequest
from app.services.document_service import DocumentService

router = APIRouter()


def _document(document: Document) -> dict:
    return DocumentResponse.model_validate(document).model_dump()


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_document(
    document: Optional[UploadFile] = File(None, description="File to upload"),
    document_type: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    is_primary: bool = Form(False),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Upload a single personal document.
    """
    stored = await DocumentService(db).upload(
        current_user.id, document, document_type, description, is_primary
    )
    return {"status": "success", "data": {"document": _document(stored), "url": stored.file_url}}


@router.post("/upload/multiple", status_code=status.HTTP_201_CREATED)
async def upload_documents(
    documents: Optional[List[UploadFile]] = File(None, description="Files to upload"),
    document_type: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stored = await DocumentService(db).upload_many(current_user.id, documents or [], document_type, description)
    return {
        "status": "success",
        "data": {"documents": [_document(doc) for doc in stored], "count": len(stored)},
    }


@router.get("/my-documents")
async def list_my_documents(
    document_type: Optional[str] = Query(None, alias="type", description="Filter by document type"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the caller's documents, primary documents first.
    """
    documents = await DocumentService(db).list_user_documents(current_user.id, document_type)
    return {"status": "success", "data": [_document(doc) for doc in documents]}


@router.post("/company/{company_id}/upload", status_code=status.HTTP_201_CREATED)
async def upload_company_document(
    company_id: UUID,
    document: Optional[UploadFile] = File(None),
    document_type: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    is_primary: bool = Form(False),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Upload a document on behalf of a company the caller belongs to.
    """
    service = DocumentService(db)
    await service.require_company_access(company_id, current_user)
    stored = await service.upload(
        current_user.id, document, document_type, description, is_primary, company_id=company_id
    )
    return {"status": "success", "data": {"document": _document(stored), "url": stored.file_url}}


@router.get("/company/{company_id}/documents")
async def list_company_documents(
    company_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    documents = await DocumentService(db).list_company_documents(company_id, current_user)
    return {"status": "success", "data": [_document(doc) for doc in documents]}


@router.get("/{document_id}")
async def get_document(
    document_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService(db).get_document(document_id, current_user.id)
    return {"status": "success", "data": _document(document)}


@router.patch("/{document_id}")
async def update_document(
    document_id: UUID,
    body: DocumentUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update document metadata.
    """
    document = await DocumentService(db).update_document(
        document_id, current_user.id, body.model_dump(exclude_unset=True)
    )
    return {"status": "success", "data": _document(document)}


@router.patch("/{document_id}/primary")
async def set_primary_document(
    document_id: UUID,
    body: PrimaryDocumentRequest,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService(db).set_primary(document_id, current_user.id, body.document_type)
    return {"status": "success", "data": _document(document)}


@router.delete("/{document_id}")
async def delete_document(
    document_id: UUID,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a document and its file.
    """
    await DocumentService(db).delete_document(document_id, current_user.id)
    return {"status": "success", "message": "Document deleted successfully"}
