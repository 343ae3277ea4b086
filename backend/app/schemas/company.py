"""
Company schemas. Requests are camelCase; responses mirror the table columns.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.schemas.common import CamelModel, not_null


class CompanyBase(CamelModel):
    industry: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    website: Optional[str] = Field(None, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=50)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)


class CompanyCreate(CompanyBase):
    """Schema for creating a company."""

    name: str = Field(..., min_length=1, max_length=150, description="Company name")


class CompanyUpdate(CompanyBase):
    """Partial update; only keys present in the body are written."""

    name: Optional[str] = Field(None, min_length=1, max_length=150)

    reject_nulls = not_null("name")


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    industry: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    is_active: bool
    created_by: Optional[UUID] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class CompanyMemberAdd(CamelModel):
    """Body is ``{"userId": ...}``; ``role`` labels the membership."""

    user_id: UUID
    role: str = Field("member", min_length=1, max_length=50)


class CompanyMemberResponse(BaseModel):
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    is_active: bool
    membership_role: str
    roles: List[str] = Field(default_factory=list)
    joined_at: Optional[datetime] = None
