"""
Application model for job applications and their review status.
"""

import enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid

from app.models.base import Base, TimestampMixin, enum_type, uuid_pk


class ApplicationStatus(str, enum.Enum):
    """Application status enumeration."""
    PENDING = "pending"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


# Statuses an employer may set; withdrawal belongs to the applicant
REVIEW_STATUSES = (
    ApplicationStatus.PENDING,
    ApplicationStatus.REVIEWED,
    ApplicationStatus.ACCEPTED,
    ApplicationStatus.REJECTED,
)

WITHDRAWABLE_STATUSES = (ApplicationStatus.PENDING, ApplicationStatus.REVIEWED)


class Application(TimestampMixin, Base):
    """
    A job seeker's application to a job; one per (job, applicant).
    """
    __tablename__ = "job_applications"
    __table_args__ = (UniqueConstraint("job_id", "applicant_id", name="uq_application_job_applicant"),)

    id = uuid_pk()
    job_id = Column(Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    applicant_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    cover_letter = Column(Text, nullable=True)
    resume_url = Column(String(500), nullable=True)
    status = Column(enum_type(ApplicationStatus), default=ApplicationStatus.PENDING, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    withdrawn_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Application(id={self.id}, job_id={self.job_id}, status='{self.status}')>"
