"""
Job seeker profile models.

A job seeker has one profile summary and one set of personal details, plus
any number of addresses, education entries, experience entries and references.
"""

from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, Numeric, String, Text, Uuid

from app.models.base import Base, TimestampMixin, uuid_pk


def _owner_column() -> Column:
    return Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)


class JobSeekerProfile(TimestampMixin, Base):
    __tablename__ = "job_seeker_profiles"

    id = uuid_pk()
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    professional_summary = Column(Text, nullable=True)
    field_of_expertise = Column(String(150), nullable=True)
    qualification_level = Column(String(100), nullable=True)
    years_experience = Column(Integer, nullable=True)


class PersonalDetails(TimestampMixin, Base):
    __tablename__ = "job_seeker_personal_details"

    id = uuid_pk()
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    middle_name = Column(String(100), nullable=True)
    gender = Column(String(30), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    nationality = Column(String(100), nullable=True)
    id_type = Column(String(50), nullable=True)
    id_number = Column(String(100), nullable=True)
    id_document_url = Column(String(500), nullable=True)
    marital_status = Column(String(30), nullable=True)
    disability_status = Column(Boolean, nullable=True)


class Address(TimestampMixin, Base):
    __tablename__ = "job_seeker_addresses"

    id = uuid_pk()
    user_id = _owner_column()
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    is_primary = Column(Boolean, default=True, nullable=False)


class Education(TimestampMixin, Base):
    __tablename__ = "job_seeker_education"

    id = uuid_pk()
    user_id = _owner_column()
    institution_name = Column(String(200), nullable=False)
    qualification = Column(String(200), nullable=False)
    field_of_study = Column(String(200), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_current = Column(Boolean, default=False, nullable=False)
    grade = Column(String(50), nullable=True)
    certificate_url = Column(String(500), nullable=True)


class Experience(TimestampMixin, Base):
    __tablename__ = "job_seeker_experience"

    id = uuid_pk()
    user_id = _owner_column()
    company_name = Column(String(200), nullable=False)
    job_title = Column(String(200), nullable=False)
    employment_type = Column(String(50), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_current = Column(Boolean, default=False, nullable=False)
    responsibilities = Column(Text, nullable=True)
    salary = Column(Numeric(12, 2), nullable=True)
    reference_contact = Column(String(255), nullable=True)


class Reference(TimestampMixin, Base):
    __tablename__ = "job_seeker_references"

    id = uuid_pk()
    user_id = _owner_column()
    full_name = Column(String(200), nullable=False)
    relationship = Column(String(100), nullable=True)
    company = Column(String(200), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
