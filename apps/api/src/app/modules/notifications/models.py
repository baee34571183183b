"""
Notification Dead-Letter Model

One row per lifecycle email that could not be delivered. Rows are retried
by the ``notifications_retry_failed`` job until delivered or out of attempts.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class NotificationFailure(BaseModel):
    __tablename__ = "notification_failures"

    event: Mapped[str] = mapped_column(String(50), nullable=False)
    recipient: Mapped[str | None] = mapped_column(String(320), nullable=True)
    # Keyword arguments for the sender, JSON-safe
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_notification_failures_resolved_at", "resolved_at"),)
