"""
Payment Reconciliation Service

Opens gateway transactions for application fees and reconciles the
gateway's verdict with local state:

1. Initiation: owner-only; charges the fee snapshotted on the application
   (an active cohort fee must still exist) and records a pending payment.

2. Verification (payment callback):
   - Discard the caller session's stale staging buffers
   - Check the caller owns the application (or is an admin)
   - Verify with the gateway; a failed transaction marks the local payment
     failed and drops that application's staged files
   - Check the paid amount covers the recorded amount
   - Mark payment and application completed, send the confirmation email
   - Flush staged documents and report per-slot results

Verification is idempotent: a reference that is already completed returns
``already_verified`` without repeating side effects. Completion is a
conditional UPDATE, so of two concurrent verifications only one proceeds
to the email and the flush.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.exceptions import InvalidStateError, NotFoundError, ServiceError
from app.modules.applications import repository as application_repository
from app.modules.applications.models import PaymentStatus
from app.modules.applications.service import ApplicationNotFoundError, ensure_can_read, ensure_owner
from app.modules.documents.staging import (
    FlushReport,
    discard_buffer,
    discard_stale_buffers_for_session,
    flush_staged_documents,
)
from app.modules.fees.service import resolve_fee
from app.modules.notifications.dispatcher import NotificationEvent, dispatch_notification
from app.modules.payments import repository
from app.modules.payments.gateway import PaystackGateway, get_gateway, to_minor_units
from app.modules.payments.models import Payment
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class PaymentNotFoundError(NotFoundError):
    def __init__(self, reference: str):
        super().__init__("Payment", reference)


class PaymentVerificationFailedError(ServiceError):
    def __init__(self, message: str = "Payment verification failed."):
        super().__init__(message=message, error_code="PAYMENT_VERIFICATION_FAILED", status_code=402)


@dataclass
class InitiatedPayment:
    authorization_url: str
    access_code: str | None
    reference: str
    amount: Decimal
    currency: str


@dataclass
class VerificationResult:
    reference: str
    application_id: int
    already_verified: bool
    documents: FlushReport = field(default_factory=FlushReport)


def build_reference(application_number: str, now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{application_number}-{now_ms}"


async def initiate_payment(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
    gateway: PaystackGateway | None = None,
) -> InitiatedPayment:
    """
    Start a gateway transaction for an application's fee.

    The charge is the application's fee snapshot. The cohort must still
    have an active fee configuration.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        ForbiddenError: If the caller is not the owner
        InvalidStateError: If the fee is already paid
        FeeNotConfiguredError: If the cohort has no active fee
        PaymentGatewayError: If the gateway rejects the transaction
    """
    application = await application_repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    ensure_owner(application, caller)

    if application.payment_status == PaymentStatus.COMPLETED:
        raise InvalidStateError("The application fee has already been paid.")

    await resolve_fee(db, application.cohort_id)

    amount = Decimal(application.application_fee)
    currency = application.fee_currency
    reference = build_reference(application.application_number)
    metadata = {
        "application_id": application.id,
        "application_number": application.application_number,
        "user_id": caller.id,
        "full_name": application.full_name,
    }

    gateway = gateway or get_gateway()
    transaction = await gateway.initialize_transaction(
        email=application.email,
        amount_minor=to_minor_units(amount),
        reference=reference,
        metadata=metadata,
    )

    await repository.create(
        db,
        Payment(
            application_id=application.id,
            user_id=caller.id,
            amount=amount,
            currency=currency,
            reference=reference,
            access_code=transaction.access_code,
            status=PaymentStatus.PENDING,
            gateway_metadata=metadata,
        ),
    )
    logger.info(
        f"Payment {reference} initiated for application {application.application_number}: "
        f"{amount} {currency}"
    )

    return InitiatedPayment(
        authorization_url=transaction.authorization_url,
        access_code=transaction.access_code,
        reference=reference,
        amount=amount,
        currency=currency,
    )


async def _reject_failed_transaction(
    db: AsyncSession,
    redis: Redis | None,
    payment: Payment | None,
    session_token: str | None,
) -> None:
    if payment is None:
        return

    if payment.status == PaymentStatus.PENDING:
        await repository.mark_failed(db, payment)
        logger.info(f"Marked payment {payment.reference} failed")

    if redis is not None and session_token:
        await discard_stale_buffers_for_session(redis, session_token)

    payment = await repository.get_by_reference(db, reference)
    application = None
    if payment is not None:
        application = await application_repository.get_by_id(db, payment.application_id)
        if application is None:
            raise ApplicationNotFoundError(payment.application_id)
        ensure_can_read(application, caller)

    gateway = gateway or get_gateway()
    verification = await gateway.verify_transaction(reference)

    if not verification.successful:
        logger.warning(f"Gateway reports payment {reference} not successful ({verification.status})")
        await _reject_failed_transaction(db, redis, payment, session_token)
        raise PaymentVerificationFailedError()

    if payment is None:
        raise PaymentNotFoundError(reference)

    if payment.status == PaymentStatus.COMPLETED:
        logger.info(f"Payment {reference} already verified")
        return VerificationResult(
            reference=reference,
            application_id=payment.application_id,
            already_verified=True,
        )

    expected_minor = to_minor_units(payment.amount)
    if verification.paid_amount < expected_minor:
        logger.error(
            f"Payment {reference} underpaid: got {verification.paid_amount}, expected {expected_minor}"
        )
        raise PaymentVerificationFailedError("Paid amount does not cover the application fee.")

    completed = await repository.mark_completed(
        db,
        reference,
        paid_at=verification.paid_at or datetime.now(UTC),
        payment_method=verification.channel,
    )
    if not completed:
        # A concurrent verification completed it between our read and write
        await db.rollback()
        logger.info(f"Payment {reference} already verified by a concurrent request")
        return VerificationResult(
            reference=reference,
            application_id=payment.application_id,
            already_verified=True,
        )

    await application_repository.mark_payment_completed(db, application.id, reference)
    logger.info(f"Payment {reference} verified for application {application.application_number}")

    owner = await UserRepository.get_by_id(db, application.user_id)
    if owner is not None and owner.email:
        dispatch_notification(
            NotificationEvent.PAYMENT_CONFIRMED,
            to_email=owner.email,
            applicant_name=owner.name or "Applicant",
            application_number=application.application_number,
            amount=payment.amount,
            currency=payment.currency,
            reference=reference,
        )

    report = FlushReport()
    if redis is not None and session_token:
        report = await flush_staged_documents(redis, application.id, session_token)
    elif session_token:
        logger.warning(f"Redis unavailable; staged documents for {reference} not flushed")

    return VerificationResult(
        reference=reference,
        application_id=application.id,
        already_verified=False,
        documents=report,
    )


async def list_payments_for_application(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
) -> list[Payment]:
    application = await application_repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    ensure_can_read(application, caller)

    return await repository.list_for_application(db, application_id)
