"""
Payments Router

Endpoints:
- POST /payments/initiate                      - Start a Paystack transaction
- POST /payments/verify                        - Reconcile after the Paystack callback
- GET  /payments/applications/{application_id} - Payment history (owner or admin)
"""

import logging

from fastapi import APIRouter, Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.core.exceptions import ServiceError, to_http_exception
from app.core.rate_limit import enforce_rate_limit
from app.core.redis import get_redis
from app.modules.payments import service
from app.modules.payments.schemas import (
    DocumentFlushResult,
    PaymentInitiateRequest,
    PaymentInitiateResponse,
    PaymentResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_INITIATE = (5, 60)  # 5 initiations per minute per user
RATE_LIMIT_VERIFY = (20, 60)


def _handle_service_error(e: ServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise to_http_exception(e) from e


@router.post(
    "/initiate",
    response_model=PaymentInitiateResponse,
    responses={
        403: {"description": "Caller does not own the application"},
        409: {"description": "Fee already paid"},
        422: {"description": "Fee not configured for the cohort"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Payment gateway error"},
    },
)
async def initiate_payment(
    data: PaymentInitiateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentInitiateResponse:
    """Open a Paystack transaction and return the checkout URL."""
    await enforce_rate_limit(f"payments:initiate:{user.id}", *RATE_LIMIT_INITIATE)

    try:
        payment = await service.initiate_payment(db, data.application_id, user)
    except ServiceError as e:
        logger.warning(f"Payment initiation failed for application {data.application_id}: {e.message}")
        _handle_service_error(e)

    return PaymentInitiateResponse(
        authorization_url=payment.authorization_url,
        access_code=payment.access_code,
        reference=payment.reference,
        amount=payment.amount,
        currency=payment.currency,
    )


@router.post(
    "/verify",
    response_model=PaymentVerifyResponse,
    responses={
        402: {"description": "Payment not successful or underpaid"},
        404: {"description": "Unknown payment reference"},
        502: {"description": "Payment gateway error"},
    },
)
async def verify_payment(
    data: PaymentVerifyRequest,
    session_token: str | None = Header(None, alias="X-Staging-Session"),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentVerifyResponse:
    """
    Verify a transaction after the Paystack redirect.

    Staged documents from the ``X-Staging-Session`` session are uploaded
    once the payment is confirmed. Upload failures are reported in
    ``documents.failed`` and do not fail the request.
    """
    await enforce_rate_limit(f"payments:verify:{user.id}", *RATE_LIMIT_VERIFY)

    try:
        result = await service.verify_payment(
            db, redis, data.reference, user, session_token=session_token
        )
    except ServiceError as e:
        _handle_service_error(e)

    return PaymentVerifyResponse(
        message="Payment already verified" if result.already_verified else "Payment verified successfully",
        reference=result.reference,
        application_id=result.application_id,
        already_verified=result.already_verified,
        documents=DocumentFlushResult(
            uploaded=result.documents.uploaded,
            failed=result.documents.failed,
            discarded_stale=result.documents.discarded_stale,
        ),
    )


@router.get("/applications/{application_id}", response_model=list[PaymentResponse])
async def list_application_payments(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[PaymentResponse]:
    try:
        payments = await service.list_payments_for_application(db, application_id, user)
    except ServiceError as e:
        _handle_service_error(e)

    return [PaymentResponse.model_validate(p) for p in payments]
