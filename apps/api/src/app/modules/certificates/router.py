"""
Certificates Routers

- GET  /certificates/mine                              - Caller's certificates
- GET  /certificates/applications/{application_id}     - Certificates for an application
- POST /admin/certificates                             - Generate a certificate (admin)
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user, get_current_user
from app.core.database import get_db
from app.core.exceptions import ServiceError, to_http_exception
from app.modules.certificates import service
from app.modules.certificates.schemas import CertificateGenerateRequest, CertificateResponse

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


@router.get("/mine", response_model=list[CertificateResponse])
async def list_my_certificates(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[CertificateResponse]:
    certificates = await service.list_my_certificates(db, user)
    return [CertificateResponse.model_validate(c) for c in certificates]


@router.get("/applications/{application_id}", response_model=list[CertificateResponse])
async def get_application_certificates(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[CertificateResponse]:
    try:
        certificates = await service.get_certificates_for_application(db, application_id, user)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return [CertificateResponse.model_validate(c) for c in certificates]


@admin_router.post("", response_model=CertificateResponse, status_code=status.HTTP_201_CREATED)
async def generate_certificate(
    data: CertificateGenerateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> CertificateResponse:
    """Generate a certificate for an approved application's track."""
    try:
        certificate = await service.admin_generate_certificate(
            db,
            data.application_id,
            admin,
            data.track_code,
            data.post_nominals,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    return CertificateResponse.model_validate(certificate)
