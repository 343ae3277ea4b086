"""
Document Pydantic schemas for upload metadata and document management.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import not_null


class DocumentUpdate(BaseModel):
    """Schema for updating document metadata."""

    document_type: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=1000)

    reject_nulls = not_null("document_type")


class PrimaryDocumentRequest(BaseModel):
    document_type: str = Field(..., min_length=1, max_length=50, description="Type the document becomes primary for")


class DocumentResponse(BaseModel):
    """Schema for document response data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: Optional[UUID] = None
    company_id: Optional[UUID] = None
    uploaded_by: Optional[UUID] = None
    file_name: str
    original_name: str
    file_size: int
    mime_type: str
    file_url: str
    document_type: str
    description: Optional[str] = None
    is_primary: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
