"""
Job seeker profile schemas.

Every PUT replaces the whole record: keys missing from the body are stored
as null, matching the form the web client submits.
"""

from datetime import date
from typing import Optional

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel


class ProfileUpdate(CamelModel):
    professional_summary: Optional[str] = Field(None, max_length=2000)
    field_of_expertise: Optional[str] = Field(None, max_length=100)
    qualification_level: Optional[str] = Field(None, max_length=100)
    years_experience: Optional[int] = Field(None, ge=0, le=60)


class PersonalDetailsUpdate(CamelModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    gender: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = Field(None, max_length=100)
    id_type: Optional[str] = Field(None, max_length=50)
    id_number: Optional[str] = Field(None, max_length=100)
    id_document_url: Optional[str] = Field(None, max_length=500)
    marital_status: Optional[str] = Field(None, max_length=50)
    disability_status: Optional[bool] = None


class AddressIn(CamelModel):
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    is_primary: bool = True


class EducationIn(CamelModel):
    institution_name: str = Field(..., min_length=1, max_length=255)
    qualification: str = Field(..., min_length=1, max_length=255)
    field_of_study: Optional[str] = Field(None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    grade: Optional[str] = Field(None, max_length=100)
    certificate_url: Optional[str] = Field(None, max_length=500)


class ExperienceIn(CamelModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    job_title: str = Field(..., min_length=1, max_length=255)
    employment_type: Optional[str] = Field(None, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    responsibilities: Optional[str] = Field(None, max_length=2000)
    salary: Optional[float] = Field(None, ge=0)
    reference_contact: Optional[str] = Field(None, max_length=255)


class ReferenceIn(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    relationship: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
