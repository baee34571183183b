"""Cohort and track schemas."""

from datetime import date

from pydantic import BaseModel, ConfigDict

from app.modules.cohorts.models import CohortStatus


class CohortResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    month: int
    year: int
    application_deadline: date | None = None
    start_date: date | None = None
    end_date: date | None = None
    capacity: int
    status: CohortStatus


class TrackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    description: str | None = None
