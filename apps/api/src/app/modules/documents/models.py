"""
Supporting Document Models
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class DocumentType(str, enum.Enum):
    ACADEMIC_CERTIFICATE = "academic_certificate"
    PROFESSIONAL_CERTIFICATE = "professional_certificate"
    CV = "cv"
    PASSPORT_PHOTO = "passport_photo"
    IDENTIFICATION = "identification"
    OTHER = "other"


class SupportingDocument(BaseModel):
    """A file attached to an application, stored remotely."""

    __tablename__ = "supporting_documents"

    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType, name="document_type"), nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_url: Mapped[str] = mapped_column(Text, nullable=False)
    storage_public_id: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<SupportingDocument(id={self.id}, application_id={self.application_id}, "
            f"type={self.document_type.value})>"
        )
