"""
Company model and company membership.
"""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text, UniqueConstraint, Uuid

from app.models.base import Base, TimestampMixin, uuid_pk


class Company(TimestampMixin, Base):
    __tablename__ = "companies"

    id = uuid_pk()
    name = Column(String(150), nullable=False, index=True)
    industry = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    website = Column(String(255), nullable=True)
    logo_url = Column(String(500), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    def __repr__(self):
        return f"<Company(id={self.id}, name='{self.name}')>"


class CompanyUser(TimestampMixin, Base):
    """Membership of a user in a company; gates company document access."""
    __tablename__ = "company_users"
    __table_args__ = (UniqueConstraint("company_id", "user_id"),)

    id = uuid_pk()
    company_id = Column(Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(50), default="owner", nullable=False)
