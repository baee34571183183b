"""
Supporting Documents Service

Upload, list and delete documents attached to an application. Uploads
are validated before storage is touched; a failed storage write leaves
no database row behind.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.exceptions import NotFoundError
from app.modules.applications import repository as application_repository
from app.modules.applications.service import ApplicationNotFoundError, ensure_can_read, ensure_owner
from app.modules.documents import repository
from app.modules.documents.models import DocumentType, SupportingDocument
from app.modules.documents.storage import DocumentStorage, DocumentStorageError, get_storage
from app.modules.documents.validation import UploadPath, validate_upload

logger = logging.getLogger(__name__)


class DocumentNotFoundError(NotFoundError):
    def __init__(self, document_id: int):
        super().__init__("Document", document_id)


async def store_document(
    db: AsyncSession,
    application_id: int,
    document_type: DocumentType,
    file_name: str,
    mime_type: str,
    data: bytes,
    path: UploadPath,
    storage: DocumentStorage | None = None,
) -> SupportingDocument:
    """
    Validate, upload and record a document without access checks.

    Used by the upload endpoint after authorisation and by the staging
    flush after payment verification.

    Raises:
        DocumentValidationError: Before any storage call
        DocumentStorageError: If the remote write fails
    """
    validate_upload(file_name, mime_type, len(data), path)

    storage = storage or get_storage()
    stored = await storage.upload(file_name, data, mime_type)

    document = SupportingDocument(
        application_id=application_id,
        document_type=document_type,
        file_name=file_name,
        storage_url=stored.secure_url,
        storage_public_id=stored.public_id,
        file_size=len(data),
        mime_type=mime_type,
    )
    document = await repository.create(db, document)
    logger.info(f"Stored {document_type.value} document {document.id} for application {application_id}")
    return document


async def upload_document(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
    document_type: DocumentType,
    file_name: str,
    mime_type: str,
    data: bytes,
    path: UploadPath = UploadPath.POST_SUBMISSION,
) -> SupportingDocument:
    """
    Upload a document to an application the caller owns.

    Raises:
        ApplicationNotFoundError, ForbiddenError, DocumentValidationError,
        DocumentStorageError
    """
    application = await application_repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    ensure_owner(application, caller)

    return await store_document(db, application_id, document_type, file_name, mime_type, data, path)


async def list_documents(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
) -> list[SupportingDocument]:
    application = await application_repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    ensure_can_read(application, caller)

    return await repository.list_for_application(db, application_id)


async def delete_document(
    db: AsyncSession,
    document_id: int,
    caller: CurrentUser,
    application_id: int | None = None,
    storage: DocumentStorage | None = None,
) -> None:
    """
    Delete a document regardless of application status.

    The row is removed first; the remote asset is destroyed best-effort.

    Raises:
        DocumentNotFoundError: If the document doesn't exist
        ForbiddenError: Unless the caller owns the application or is an admin
    """
    document = await repository.get_by_id(db, document_id)
    if document is None or (application_id is not None and document.application_id != application_id):
        raise DocumentNotFoundError(document_id)

    application = await application_repository.get_by_id(db, document.application_id)
    if application is None:
        raise ApplicationNotFoundError(document.application_id)
    ensure_can_read(application, caller)

    public_id = document.storage_public_id
    await repository.delete(db, document)
    logger.info(f"User {caller.id} deleted document {document_id}")

    storage = storage or get_storage()
    try:
        await storage.delete(public_id)
    except DocumentStorageError as e:
        logger.error(f"Remote asset {public_id} not removed: {e.message}")
