"""
Upload Validation

Size and mime checks run before any remote storage call. The form-fill
path (staging) and the post-submission path (document manager) have
different size limits.
"""

import enum

from app.core.config import settings
from app.core.exceptions import ServiceError

ALLOWED_MIME_TYPES = frozenset({"application/pdf", "image/jpeg", "image/png"})


class UploadPath(str, enum.Enum):
    FORM_FILL = "form_fill"
    POST_SUBMISSION = "post_submission"


class DocumentValidationError(ServiceError):
    def __init__(self, message: str):
        super().__init__(message=message, error_code="DOCUMENT_VALIDATION_ERROR", status_code=422)


def max_upload_bytes(path: UploadPath) -> int:
    if path == UploadPath.FORM_FILL:
        return settings.form_fill_max_upload_bytes
    return settings.post_submission_max_upload_bytes


def _format_megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):g}MB"


def validate_upload(file_name: str, mime_type: str, size: int, path: UploadPath) -> None:
    """
    Raises:
        DocumentValidationError: If the file is empty, too large for the
            upload path, or not a PDF, JPEG or PNG
    """
    if not file_name or not file_name.strip():
        raise DocumentValidationError("File name is required.")

    if size <= 0:
        raise DocumentValidationError("File is empty.")

    limit = max_upload_bytes(path)
    if size > limit:
        raise DocumentValidationError(
            f"File {file_name} is {_format_megabytes(size)}; the maximum is {_format_megabytes(limit)}."
        )

    if mime_type not in ALLOWED_MIME_TYPES:
        raise DocumentValidationError(
            f"Unsupported file type {mime_type}. Allowed: PDF, JPEG, PNG."
        )
