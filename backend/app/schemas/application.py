"""
Application schemas for applying to jobs and reviewing applications.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ApplicationCreate(BaseModel):
    job_id: UUID = Field(..., description="Job to apply to")
    cover_letter: Optional[str] = Field(None, max_length=5000, description="Cover letter text")
    resume_url: Optional[str] = Field(None, max_length=500, description="Link to an uploaded resume")


class ApplicationStatusUpdate(BaseModel):
    """Review decision set by the employer."""

    status: Literal["pending", "reviewed", "accepted", "rejected"]
    notes: Optional[str] = Field(None, max_length=2000)


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_id: UUID
    applicant_id: UUID
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    status: str
    reviewed_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
