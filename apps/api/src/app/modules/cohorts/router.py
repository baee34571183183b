"""
Cohorts Router

Public lookup endpoints used by the application form:
- GET /cohorts          - List cohorts (optionally filtered by status)
- GET /cohorts/tracks   - List certification tracks
- GET /cohorts/{id}     - Get one cohort
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.cohorts import repository
from app.modules.cohorts.models import CohortStatus
from app.modules.cohorts.schemas import CohortResponse, TrackResponse

router = APIRouter()


@router.get("", response_model=list[CohortResponse])
async def list_cohorts(
    cohort_status: CohortStatus | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> list[CohortResponse]:
    cohorts = await repository.list_cohorts(db, status=cohort_status)
    return [CohortResponse.model_validate(cohort) for cohort in cohorts]


@router.get("/tracks", response_model=list[TrackResponse])
async def list_tracks(db: AsyncSession = Depends(get_db)) -> list[TrackResponse]:
    tracks = await repository.list_tracks(db)
    return [TrackResponse.model_validate(track) for track in tracks]


@router.get("/{cohort_id}", response_model=CohortResponse)
async def get_cohort(
    cohort_id: int,
    db: AsyncSession = Depends(get_db),
) -> CohortResponse:
    cohort = await repository.get_by_id(db, cohort_id)
    if cohort is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "COHORT_NOT_FOUND", "message": f"Cohort {cohort_id} not found"},
        )
    return CohortResponse.model_validate(cohort)
