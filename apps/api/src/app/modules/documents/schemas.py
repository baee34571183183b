"""
Supporting Document Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.modules.documents.models import DocumentType


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    document_type: DocumentType
    file_name: str
    storage_url: str
    file_size: int | None = None
    mime_type: str | None = None
    uploaded_at: datetime


class StagedSlotResponse(BaseModel):
    slot: str
    file_name: str
    mime_type: str
    size: int


class StageDocumentResponse(BaseModel):
    """Returned after staging a file. The client must send ``session_token`` back."""

    application_id: int
    session_token: str
    created_at: float
    slots: list[StagedSlotResponse]
