"""
Document Staging Buffer

Files picked during form-fill are held in Redis until the application fee
is verified, then flushed into real supporting documents. The buffer is
at-most-once and time-bounded: a flush claims it by reading and deleting
the hash in one MULTI/EXEC, so concurrent flushes never upload the same
slot twice, and buffers older than the staleness window are discarded
without upload.

Layout (one Redis hash per buffer):
    key:    staging:{application_id}:{session_token}
    fields: created_at -> epoch seconds
            <slot>     -> JSON {file_name, mime_type, size, data (base64)}

The Redis TTL (twice the staleness window) only reclaims memory; staleness
is always decided from ``created_at``.
"""

import asyncio
import base64
import enum
import json
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.config import settings
from app.core.database import async_session_maker
from app.core.exceptions import InvalidStateError, ServiceError
from app.modules.applications import repository as application_repository
from app.modules.applications.models import PaymentStatus
from app.modules.applications.service import ApplicationNotFoundError, ensure_owner
from app.modules.documents.models import DocumentType
from app.modules.documents.service import store_document
from app.modules.documents.storage import DocumentStorage
from app.modules.documents.validation import UploadPath, validate_upload

logger = logging.getLogger(__name__)

STAGING_KEY_PREFIX = "staging"
CREATED_AT_FIELD = "created_at"


class StagingSlot(str, enum.Enum):
    ACADEMIC = "academic"
    PROFESSIONAL = "professional"
    CV = "cv"
    PHOTO = "photo"
    ID = "id"


SLOT_DOCUMENT_TYPES: dict[StagingSlot, DocumentType] = {
    StagingSlot.ACADEMIC: DocumentType.ACADEMIC_CERTIFICATE,
    StagingSlot.PROFESSIONAL: DocumentType.PROFESSIONAL_CERTIFICATE,
    StagingSlot.CV: DocumentType.CV,
    StagingSlot.PHOTO: DocumentType.PASSPORT_PHOTO,
    StagingSlot.ID: DocumentType.IDENTIFICATION,
}


class StagingUnavailableError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Document staging is temporarily unavailable.",
            error_code="STAGING_UNAVAILABLE",
            status_code=503,
        )


@dataclass
class StagedFile:
    file_name: str
    mime_type: str
    size: int
    data: str  # base64

    def content(self) -> bytes:
        return base64.b64decode(self.data)

    def to_json(self) -> str:
        return json.dumps(
            {
                "file_name": self.file_name,
                "mime_type": self.mime_type,
                "size": self.size,
                "data": self.data,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "StagedFile":
        payload = json.loads(raw)
        return cls(
            file_name=payload["file_name"],
            mime_type=payload["mime_type"],
            size=int(payload["size"]),
            data=payload["data"],
        )


@dataclass
class StagingBuffer:
    """Staged files for one application in one client session."""

    application_id: int
    session_token: str
    created_at: float
    files: dict[StagingSlot, StagedFile] = field(default_factory=dict)

    @property
    def slots(self) -> list[StagingSlot]:
        return list(self.files)


@dataclass
class FlushReport:
    """Per-slot outcome of a flush. Failures are reported, never raised."""

    uploaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    discarded_stale: bool = False

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)


def new_session_token() -> str:
    return secrets.token_urlsafe(24)


def buffer_key(application_id: int, session_token: str) -> str:
    return f"{STAGING_KEY_PREFIX}:{application_id}:{session_token}"


def is_stale(created_at: float, now: float | None = None, max_age_seconds: int | None = None) -> bool:
    """True once ``max_age_seconds`` (default: the configured window) have passed since creation."""
    if now is None:
        now = time.time()
    if max_age_seconds is None:
        max_age_seconds = settings.staging_stale_after_seconds
    return now - created_at > max_age_seconds


# ============================================
# Buffer operations
# ============================================


async def stage_file(
    redis: Redis,
    application_id: int,
    session_token: str,
    slot: StagingSlot,
    file_name: str,
    mime_type: str,
    data: bytes,
    now: float | None = None,
) -> StagingBuffer:
    """
    Put one file into a slot, replacing whatever was there.

    Validation uses the form-fill size limit and runs before any write.

    Raises:
        DocumentValidationError: If the file is too large or of the wrong type
    """
    validate_upload(file_name, mime_type, len(data), UploadPath.FORM_FILL)

    key = buffer_key(application_id, session_token)
    created = await redis.hsetnx(key, CREATED_AT_FIELD, str(now if now is not None else time.time()))
    if created:
        await redis.expire(key, settings.staging_stale_after_seconds * 2)

    staged = StagedFile(
        file_name=file_name,
        mime_type=mime_type,
        size=len(data),
        data=base64.b64encode(data).decode("ascii"),
    )
    await redis.hset(key, slot.value, staged.to_json())
    logger.debug(f"Staged {slot.value} for application {application_id}")

    buffer = await load_buffer(redis, application_id, session_token)
    return buffer


async def load_buffer(redis: Redis, application_id: int, session_token: str) -> StagingBuffer | None:
    raw = await redis.hgetall(buffer_key(application_id, session_token))
    return _parse_buffer(raw, application_id, session_token)


async def claim_buffer(redis: Redis, application_id: int, session_token: str) -> StagingBuffer | None:
    """
    Read and delete a buffer atomically.

    Only one caller can receive a given buffer's contents; every other
    concurrent caller gets None.
    """
    key = buffer_key(application_id, session_token)

    pipe = redis.pipeline(transaction=True)
    pipe.hgetall(key)
    pipe.delete(key)
    raw, _deleted = await pipe.execute()

    return _parse_buffer(raw, application_id, session_token)


def _parse_buffer(raw: dict | None, application_id: int, session_token: str) -> StagingBuffer | None:
    if not raw:
        return None

    raw = dict(raw)
    created_at = float(raw.pop(CREATED_AT_FIELD, 0) or 0)
    files = {}
    for name, value in raw.items():
        try:
            slot = StagingSlot(name)
        except ValueError:
            logger.warning(f"Ignoring unknown staging slot {name!r}")
            continue
        files[slot] = StagedFile.from_json(value)

    return StagingBuffer(
        application_id=application_id,
        session_token=session_token,
        created_at=created_at,
        files=files,
    )


async def discard_buffer(redis: Redis, application_id: int, session_token: str) -> bool:
    """Delete a buffer. Returns True if one existed."""
    removed = await redis.delete(buffer_key(application_id, session_token))
    return bool(removed)


async def _discard_if_stale(redis: Redis, key: str, now: float) -> bool:
    created_at = await redis.hget(key, CREATED_AT_FIELD)
    if created_at is None or is_stale(float(created_at), now):
        await redis.delete(key)
        return True
    return False


async def discard_stale_buffers_for_session(
    redis: Redis,
    session_token: str,
    now: float | None = None,
) -> int:
    """
    Discard this session's stale buffers across all applications.

    Run before a payment callback is processed.

    Returns:
        Number of buffers discarded
    """
    now = now if now is not None else time.time()
    discarded = 0
    async for key in redis.scan_iter(match=f"{STAGING_KEY_PREFIX}:*:{session_token}"):
        if await _discard_if_stale(redis, key, now):
            discarded += 1

    if discarded:
        logger.info(f"Discarded {discarded} stale staging buffer(s) for session")
    return discarded


async def sweep_stale_buffers(redis: Redis, now: float | None = None) -> int:
    """Discard every stale buffer. Returns the number discarded."""
    now = now if now is not None else time.time()
    discarded = 0
    async for key in redis.scan_iter(match=f"{STAGING_KEY_PREFIX}:*"):
        if await _discard_if_stale(redis, key, now):
            discarded += 1
    return discarded


# ============================================
# Flush
# ============================================


SessionFactory = Callable[[], AsyncSession]


async def _flush_slot(
    session_factory: SessionFactory,
    application_id: int,
    slot: StagingSlot,
    staged: StagedFile,
    storage: DocumentStorage | None,
) -> None:
    async with session_factory() as db:
        await store_document(
            db,
            application_id,
            SLOT_DOCUMENT_TYPES[slot],
            staged.file_name,
            staged.mime_type,
            staged.content(),
            UploadPath.FORM_FILL,
            storage=storage,
        )


async def flush_staged_documents(
    redis: Redis,
    application_id: int,
    session_token: str,
    *,
    session_factory: SessionFactory = async_session_maker,
    storage: DocumentStorage | None = None,
    now: float | None = None,
) -> FlushReport:
    """
    Persist every staged slot as a supporting document.

    The buffer is claimed (read and deleted atomically) before anything is
    uploaded, so a concurrent flush of the same buffer finds nothing.
    Slots upload concurrently, each in its own database session. Failures
    are collected per slot; there is no retry from staging.
    """
    report = FlushReport()

    buffer = await claim_buffer(redis, application_id, session_token)
    if buffer is None:
        return report

    if is_stale(buffer.created_at, now):
        logger.info(f"Staging buffer for application {application_id} is stale, discarding")
        report.discarded_stale = True
        return report

    slots = list(buffer.files.items())
    results = await asyncio.gather(
        *(_flush_slot(session_factory, application_id, slot, staged, storage) for slot, staged in slots),
        return_exceptions=True,
    )

    for (slot, staged), result in zip(slots, results):
        if isinstance(result, BaseException):
            message = getattr(result, "message", None) or str(result) or result.__class__.__name__
            logger.error(
                f"Failed to flush {slot.value} ({staged.file_name}) for application "
                f"{application_id}: {message}"
            )
            report.failed[slot.value] = message
        else:
            report.uploaded.append(slot.value)

    logger.info(
        f"Flushed staging buffer for application {application_id}: "
        f"{len(report.uploaded)} uploaded, {len(report.failed)} failed"
    )
    return report


# ============================================
# Application-level staging
# ============================================


async def stage_for_application(
    db: AsyncSession,
    redis: Redis | None,
    application_id: int,
    caller: CurrentUser,
    slot: StagingSlot,
    file_name: str,
    mime_type: str,
    data: bytes,
    session_token: str | None = None,
) -> StagingBuffer:
    """
    Stage a file for an application the caller owns.

    A new session token is issued when none is supplied. Staging is closed
    once the fee has been paid; later files go through the document upload.

    Raises:
        StagingUnavailableError: If Redis is not connected
        ApplicationNotFoundError, ForbiddenError, InvalidStateError,
        DocumentValidationError
    """
    if redis is None:
        raise StagingUnavailableError()

    application = await application_repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    ensure_owner(application, caller)

    if application.payment_status == PaymentStatus.COMPLETED:
        raise InvalidStateError("The application fee is already paid; upload documents directly.")

    return await stage_file(
        redis,
        application_id,
        session_token or new_session_token(),
        slot,
        file_name,
        mime_type,
        data,
    )
