"""
Job Pydantic schemas for request/response validation and serialization.

Job bodies keep snake_case keys.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.job import EmploymentType, ExperienceLevel, JobStatus
from app.schemas.common import not_null


class JobBase(BaseModel):
    """Base job schema with common fields."""

    title: str = Field(..., min_length=1, max_length=200, description="Job title")
    description: str = Field(..., min_length=1, description="Job description")
    company: str = Field(..., min_length=1, max_length=200, description="Company name")
    location: str = Field(..., min_length=1, max_length=200, description="Job location")
    company_id: Optional[UUID] = Field(None, description="Company the job is posted for")
    salary_min: Optional[int] = Field(None, ge=0, description="Minimum salary")
    salary_max: Optional[int] = Field(None, ge=0, description="Maximum salary")
    salary_currency: str = Field("USD", min_length=3, max_length=3, description="Salary currency code")
    category: str = Field(..., min_length=1, max_length=100, description="Job category")
    experience_level: ExperienceLevel = Field(..., description="Required experience level")
    employment_type: EmploymentType = Field(..., description="Type of employment")
    remote: bool = Field(False, description="Remote position")
    requirements: List[str] = Field(default_factory=list, description="Job requirements")
    responsibilities: List[str] = Field(default_factory=list, description="Job responsibilities")
    benefits: List[str] = Field(default_factory=list, description="Job benefits")
    application_deadline: Optional[datetime] = Field(None, description="Last day to apply")
    status: JobStatus = Field(JobStatus.ACTIVE, description="Publication status")

    @model_validator(mode="after")
    def validate_salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_max < self.salary_min:
            raise ValueError("Maximum salary must be greater than or equal to minimum salary")
        return self


class JobCreate(JobBase):
    """Schema for creating a new job."""
    pass


class JobUpdate(BaseModel):
    """Schema for updating job information; all fields optional."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    company: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    company_id: Optional[UUID] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    experience_level: Optional[ExperienceLevel] = None
    employment_type: Optional[EmploymentType] = None
    remote: Optional[bool] = None
    requirements: Optional[List[str]] = None
    responsibilities: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    application_deadline: Optional[datetime] = None
    status: Optional[JobStatus] = None

    reject_nulls = not_null("title", "description", "company", "salary_currency", "remote", "status")

    @model_validator(mode="after")
    def validate_salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_max < self.salary_min:
            raise ValueError("Maximum salary must be greater than or equal to minimum salary")
        return self


class ApplicationStats(BaseModel):
    total: int = 0
    pending: int = 0
    reviewed: int = 0
    accepted: int = 0
    rejected: int = 0
    withdrawn: int = 0


class JobResponse(BaseModel):
    """Schema for job response data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employer_id: UUID
    company_id: Optional[UUID] = None
    title: str
    description: str
    company: str
    location: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    salary_currency: str
    category: Optional[str] = None
    experience_level: Optional[ExperienceLevel] = None
    employment_type: Optional[EmploymentType] = None
    remote: bool
    requirements: Optional[List[str]] = None
    responsibilities: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    application_deadline: Optional[datetime] = None
    status: JobStatus
    is_featured: bool
    views_count: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class JobDetailResponse(JobResponse):
    employer_name: Optional[str] = None
    employer_email: Optional[str] = None
    application_stats: Optional[ApplicationStats] = None


class JobDeleteResponse(BaseModel):
    message: str
    job_title: str
    status: Optional[str] = None


class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    pagination: Dict[str, int]
