"""
Document model for uploaded files owned by a user or a company.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, Uuid

from app.models.base import Base, TimestampMixin, uuid_pk


class Document(TimestampMixin, Base):
    """
    Uploaded file metadata; the bytes live on disk under the upload directory.
    """
    __tablename__ = "documents"

    id = uuid_pk()

    # Owner: a user for personal documents, a company for company documents
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    company_id = Column(Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True)
    uploaded_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # File information
    file_name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    file_path = Column(String(500), nullable=False)
    file_url = Column(String(500), nullable=False)

    document_type = Column(String(50), default="general", nullable=False, index=True)
    description = Column(Text, nullable=True)
    is_primary = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Document(id={self.id}, original_name='{self.original_name}')>"

    @property
    def file_size_formatted(self) -> str:
        size = float(self.file_size or 0)
        for unit in ["B", "KB", "MB", "GB"]:
            if size < 1024.0:
                return f"{size:.1f} {unit}"
            size /= 1024.0
        return f"{size:.1f} TB"
