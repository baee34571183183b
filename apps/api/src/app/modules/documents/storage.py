"""
Remote Document Storage

Thin async wrapper over the Cloudinary SDK. The SDK is synchronous, so
every call runs in a worker thread.
"""

import asyncio
import base64
import logging
import re
import time
from dataclasses import dataclass
from pathlib import PurePath

import cloudinary
import cloudinary.uploader

from app.core.config import settings
from app.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


class DocumentStorageError(ServiceError):
    def __init__(self, message: str):
        super().__init__(message=message, error_code="DOCUMENT_STORAGE_ERROR", status_code=502)


@dataclass(frozen=True)
class StoredFile:
    public_id: str
    url: str
    secure_url: str


def build_public_id(file_name: str, now_ms: int | None = None) -> str:
    """``{ms}-{name without extension}`` with unsafe characters replaced by ``_``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    stem = PurePath(file_name).stem or "file"
    return f"{now_ms}-{re.sub(r'[^a-zA-Z0-9.-]', '_', stem)}"


class DocumentStorage:
    """Cloudinary-backed document store."""

    def __init__(self, folder: str | None = None):
        self.folder = folder or settings.cloudinary_folder
        self._configured = False

    def _configure(self) -> None:
        if self._configured:
            return

        if not (
            settings.cloudinary_cloud_name
            and settings.cloudinary_api_key
            and settings.cloudinary_api_secret
        ):
            raise DocumentStorageError("Document storage is not configured.")

        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self._configured = True

    async def upload(self, file_name: str, data: bytes, mime_type: str) -> StoredFile:
        """
        Upload a file.

        Raises:
            DocumentStorageError: If storage is unconfigured or the upload fails
        """
        self._configure()

        data_uri = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
        public_id = build_public_id(file_name)

        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                data_uri,
                folder=self.folder,
                resource_type="auto",
                public_id=public_id,
            )
        except Exception as e:
            logger.error(f"Upload of {file_name} failed: {e}")
            raise DocumentStorageError(f"Failed to upload {file_name}.") from e

        logger.info(f"Uploaded {file_name} as {result['public_id']}")
        return StoredFile(
            public_id=result["public_id"],
            url=result.get("url", result["secure_url"]),
            secure_url=result["secure_url"],
        )

    async def delete(self, public_id: str) -> None:
        """
        Raises:
            DocumentStorageError: If the delete call fails
        """
        self._configure()

        try:
            await asyncio.to_thread(cloudinary.uploader.destroy, public_id)
        except Exception as e:
            raise DocumentStorageError(f"Failed to delete {public_id}.") from e

        logger.info(f"Deleted remote document {public_id}")


_storage: DocumentStorage | None = None


def get_storage() -> DocumentStorage:
    global _storage
    if _storage is None:
        _storage = DocumentStorage()
    return _storage
