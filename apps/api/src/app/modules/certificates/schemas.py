"""
Certificate Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.modules.certificates.models import CertificateStatus


class CertificateGenerateRequest(BaseModel):
    application_id: int = Field(..., gt=0)
    track_code: str = Field(..., min_length=1, max_length=20)
    post_nominals: str = Field(..., min_length=1, max_length=20)


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    certificate_number: str
    track_code: str
    post_nominals: str
    issued_date: datetime
    certificate_url: str | None = None
    status: CertificateStatus
