"""
Payment Schemas
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.modules.applications.models import PaymentStatus


class PaymentInitiateRequest(BaseModel):
    application_id: int = Field(..., gt=0)


class PaymentInitiateResponse(BaseModel):
    authorization_url: str
    access_code: str | None = None
    reference: str
    amount: Decimal
    currency: str


class PaymentVerifyRequest(BaseModel):
    reference: str = Field(..., min_length=1, max_length=100)


class DocumentFlushResult(BaseModel):
    uploaded: list[str]
    failed: dict[str, str]
    discarded_stale: bool = False


class PaymentVerifyResponse(BaseModel):
    success: bool = True
    message: str
    reference: str
    application_id: int
    already_verified: bool
    documents: DocumentFlushResult


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    amount: Decimal
    currency: str
    reference: str
    status: PaymentStatus
    payment_method: str | None = None
    paid_at: datetime | None = None
    created_at: datetime
