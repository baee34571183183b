"""
Certificate Models
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class CertificateStatus(str, enum.Enum):
    GENERATED = "generated"
    ISSUED = "issued"
    REVOKED = "revoked"


class Certificate(BaseModel):
    """Fellowship certificate for one track of an approved application."""

    __tablename__ = "certificates"

    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    certificate_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    track_code: Mapped[str] = mapped_column(String(20), nullable=False)
    post_nominals: Mapped[str] = mapped_column(String(20), nullable=False)
    issued_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    certificate_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[CertificateStatus] = mapped_column(
        Enum(CertificateStatus, name="certificate_status"),
        nullable=False,
        default=CertificateStatus.GENERATED,
    )
