"""
Certificates Service

Certificates are generated by an admin for approved applications, one per
selected track.
"""

import logging
import secrets
import string
import time

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.exceptions import ForbiddenError, InvalidStateError, ValidationError
from app.modules.applications import repository as application_repository
from app.modules.applications.models import AdmissionStatus
from app.modules.applications.service import ApplicationNotFoundError, ensure_can_read
from app.modules.certificates import repository
from app.modules.certificates.models import Certificate, CertificateStatus

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def generate_certificate_number(now_ms: int | None = None) -> str:
    """e.g. ``CERT-1718000000000-Q7ZK2M``"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"CERT-{now_ms}-{suffix}"


async def admin_generate_certificate(
    db: AsyncSession,
    application_id: int,
    admin: CurrentUser,
    track_code: str,
    post_nominals: str,
) -> Certificate:
    """
    Generate a certificate for one of the application's tracks.

    Raises:
        ForbiddenError: If the caller is not an admin
        ApplicationNotFoundError: If the application doesn't exist
        InvalidStateError: If the application is not approved, or the track
            already has a certificate
        ValidationError: If the applicant did not select the track
    """
    if not admin.is_admin:
        raise ForbiddenError("Admin access is required.")

    application = await application_repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)

    if application.admission_status != AdmissionStatus.APPROVED:
        raise InvalidStateError(
            "Certificates can only be generated for approved applications.",
            expected_state=AdmissionStatus.APPROVED.value,
        )

    track_code = track_code.strip().upper()
    if track_code not in (application.selected_tracks or []):
        raise ValidationError(f"Track {track_code} was not selected on this application.")

    if await repository.get_active_for_track(db, application_id, track_code):
        raise InvalidStateError(f"A certificate for track {track_code} already exists.")

    certificate = await repository.create(
        db,
        Certificate(
            application_id=application.id,
            user_id=application.user_id,
            certificate_number=generate_certificate_number(),
            track_code=track_code,
            post_nominals=post_nominals.strip(),
            status=CertificateStatus.GENERATED,
        ),
    )
    logger.info(
        f"Admin {admin.id} generated certificate {certificate.certificate_number} "
        f"for application {application_id} ({track_code})"
    )
    return certificate


async def list_my_certificates(db: AsyncSession, caller: CurrentUser) -> list[Certificate]:
    return await repository.list_for_user(db, caller.id)


async def get_certificates_for_application(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
) -> list[Certificate]:
    application = await application_repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    ensure_can_read(application, caller)

    return await repository.list_for_application(db, application_id)
