"""
Supporting Documents Router

Mounted under /applications.

Endpoints:
- POST   /applications/{id}/documents                 - Upload a document (5MB limit)
- GET    /applications/{id}/documents                 - List documents
- DELETE /applications/{id}/documents/{document_id}   - Delete a document
- POST   /applications/{id}/staged-documents/{slot}   - Stage a file before payment (2MB limit)

Staging is scoped to a client session. The first staging call issues a
token; later calls and the payment callback send it back in the
``X-Staging-Session`` header.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, Header, Response, UploadFile, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.core.exceptions import ServiceError, to_http_exception
from app.core.redis import get_redis
from app.modules.documents import service
from app.modules.documents.models import DocumentType
from app.modules.documents.schemas import (
    DocumentResponse,
    StagedSlotResponse,
    StageDocumentResponse,
)
from app.modules.documents.staging import StagingSlot, stage_for_application
from app.modules.documents.validation import UploadPath

logger = logging.getLogger(__name__)

router = APIRouter()

STAGING_SESSION_HEADER = "X-Staging-Session"


def _handle_service_error(e: ServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise to_http_exception(e) from e


@router.post(
    "/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Caller does not own the application"},
        422: {"description": "File too large (5MB) or not a PDF, JPEG or PNG"},
        502: {"description": "Remote storage failed"},
    },
)
async def upload_document(
    application_id: int,
    document_type: DocumentType = Form(...),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DocumentResponse:
    """Upload a supporting document to an application."""
    data = await file.read()

    try:
        document = await service.upload_document(
            db,
            application_id,
            user,
            document_type,
            file.filename or "",
            file.content_type or "",
            data,
            path=UploadPath.POST_SUBMISSION,
        )
    except ServiceError as e:
        _handle_service_error(e)

    return DocumentResponse.model_validate(document)


@router.get("/{application_id}/documents", response_model=list[DocumentResponse])
async def list_documents(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[DocumentResponse]:
    try:
        documents = await service.list_documents(db, application_id, user)
    except ServiceError as e:
        _handle_service_error(e)

    return [DocumentResponse.model_validate(d) for d in documents]


@router.delete(
    "/{application_id}/documents/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_document(
    application_id: int,
    document_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        await service.delete_document(db, document_id, user, application_id=application_id)
    except ServiceError as e:
        _handle_service_error(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{application_id}/staged-documents/{slot}",
    response_model=StageDocumentResponse,
    summary="Stage Document",
    description="""
Hold a file for an application until its fee is paid.

Each slot keeps one file; staging again replaces it. Staged files are
uploaded automatically once payment is verified and are discarded if
payment does not complete within an hour.

Send the returned `session_token` in the `X-Staging-Session` header on
later staging calls and on payment verification.
""",
)
async def stage_document(
    application_id: int,
    slot: StagingSlot,
    file: UploadFile = File(...),
    session_token: str | None = Header(None, alias=STAGING_SESSION_HEADER),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    user: CurrentUser = Depends(get_current_user),
) -> StageDocumentResponse:
    data = await file.read()

    try:
        buffer = await stage_for_application(
            db,
            redis,
            application_id,
            user,
            slot,
            file.filename or "",
            file.content_type or "",
            data,
            session_token=session_token,
        )
    except ServiceError as e:
        _handle_service_error(e)

    return StageDocumentResponse(
        application_id=buffer.application_id,
        session_token=buffer.session_token,
        created_at=buffer.created_at,
        slots=[
            StagedSlotResponse(
                slot=staged_slot.value,
                file_name=staged.file_name,
                mime_type=staged.mime_type,
                size=staged.size,
            )
            for staged_slot, staged in buffer.files.items()
        ],
    )
