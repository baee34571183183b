"""
Fee Configuration Model

Per-cohort application fee. Updates insert new rows so the history of fee
changes is retained; the active row for a cohort is the current fee.
"""

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel

DEFAULT_CURRENCY = "NGN"


class FeeConfiguration(BaseModel):
    """Application fee for a cohort."""

    __tablename__ = "fee_configurations"

    cohort_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("cohorts.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_fee_configurations_cohort_active", "cohort_id", "is_active"),)
