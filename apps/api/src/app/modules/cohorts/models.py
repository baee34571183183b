"""
Cohort and Track Models

Reference data: scheduled intake periods and the certification tracks
applicants can select.
"""

import enum
from datetime import date

from sqlalchemy import Date, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class CohortStatus(str, enum.Enum):
    """Whether a cohort is accepting applications."""

    OPEN = "open"
    CLOSED = "closed"
    COMPLETED = "completed"


class Cohort(BaseModel):
    """A scheduled intake period, e.g. "March 2026"."""

    __tablename__ = "cohorts"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    application_deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    status: Mapped[CohortStatus] = mapped_column(
        Enum(CohortStatus, name="cohort_status"),
        nullable=False,
        default=CohortStatus.OPEN,
    )

    __table_args__ = (Index("ix_cohorts_year_month", "year", "month"),)


class Track(BaseModel):
    """A certification track, identified by its code (e.g. FIBAKM)."""

    __tablename__ = "tracks"

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
