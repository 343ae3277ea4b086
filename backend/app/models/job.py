"""
Job model for job postings published by employers.
"""

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from app.models.base import Base, TimestampMixin, enum_type, uuid_pk


class JobStatus(str, enum.Enum):
    """Job status enumeration."""
    ACTIVE = "active"
    CLOSED = "closed"
    DRAFT = "draft"


class EmploymentType(str, enum.Enum):
    """Employment type enumeration."""
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    INTERNSHIP = "Internship"


class ExperienceLevel(str, enum.Enum):
    """Experience level enumeration."""
    ENTRY = "Entry"
    INTERMEDIATE = "Intermediate"
    SENIOR = "Senior"
    LEAD = "Lead"


class Job(TimestampMixin, Base):
    """
    Job posting owned by an employer.
    """
    __tablename__ = "jobs"

    id = uuid_pk()
    employer_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = Column(Uuid, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)

    # Basic job information
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False)
    company = Column(String(200), nullable=False)
    location = Column(String(200), nullable=True, index=True)
    category = Column(String(100), nullable=True, index=True)
    experience_level = Column(enum_type(ExperienceLevel), nullable=True)
    employment_type = Column(enum_type(EmploymentType), nullable=True)
    remote = Column(Boolean, default=False, nullable=False)

    # Salary information
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary_currency = Column(String(3), default="USD", nullable=False)

    # Details stored as JSON arrays
    requirements = Column(JSON, nullable=True)
    responsibilities = Column(JSON, nullable=True)
    benefits = Column(JSON, nullable=True)

    application_deadline = Column(DateTime(timezone=True), nullable=True)
    status = Column(enum_type(JobStatus), default=JobStatus.ACTIVE, nullable=False, index=True)
    is_featured = Column(Boolean, default=False, nullable=False)
    views_count = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Job(id={self.id}, title='{self.title}', company='{self.company}')>"
