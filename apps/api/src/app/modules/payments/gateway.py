"""
Paystack Gateway

Async client for the two Paystack calls the portal needs: initialising a
transaction and verifying it. Amounts cross this boundary in minor units
(kobo).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx

from app.core.config import settings
from app.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


class PaymentGatewayError(ServiceError):
    def __init__(self, message: str):
        super().__init__(message=message, error_code="GATEWAY_ERROR", status_code=502)


@dataclass(frozen=True)
class TransactionInit:
    authorization_url: str
    access_code: str | None
    reference: str


@dataclass(frozen=True)
class TransactionVerification:
    reference: str
    status: str | None
    paid_amount: int
    paid_at: datetime | None
    channel: str | None
    customer_email: str | None
    successful: bool


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to integer minor units, rounding half up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _parse_paid_at(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable paid_at from gateway: {value}")
        return None


def _is_lookup_miss(status_code: int) -> bool:
    return 400 <= status_code < 500 and status_code not in (401, 403)


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class PaystackGateway:
    """
    Paystack REST client.

    A ``transport`` can be supplied to route requests somewhere other than
    the network (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.paystack_secret_key
        self.base_url = (base_url or settings.paystack_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.paystack_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self.secret_key:
            raise PaymentGatewayError("Payment gateway is not configured.")

        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={
                "Authorization": f"Bearer {self.secret_key}",
                "Content-Type": "application/json",
            },
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        allow_client_error: bool = False,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Send a request and return the JSON body.

        With ``allow_client_error``, a 4xx answer (other than an auth failure)
        is returned as a body instead of raised; Paystack uses 400/404 for
        references it does not know.
        """
        async with self._client() as client:
            try:
                response = await client.request(method, path, **kwargs)
                if allow_client_error and _is_lookup_miss(response.status_code):
                    logger.warning(f"Paystack {path} returned {response.status_code}")
                    body = _json_or_empty(response)
                else:
                    response.raise_for_status()
                    body = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"Paystack {path} returned {e.response.status_code}: {e.response.text[:500]}")
                raise PaymentGatewayError(f"Payment gateway error: {e.response.status_code}") from e
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Paystack {path} request failed: {e}")
                raise PaymentGatewayError("Payment gateway is unreachable.") from e

        if not isinstance(body, dict):
            raise PaymentGatewayError("Unexpected response from payment gateway.")
        return body

    async def initialize_transaction(
        self,
        email: str,
        amount_minor: int,
        reference: str,
        metadata: dict[str, Any] | None = None,
        callback_url: str | None = None,
    ) -> TransactionInit:
        """
        Open a transaction and return the hosted checkout URL.

        Raises:
            PaymentGatewayError: On transport errors, a rejected request,
                or a response without an authorization URL
        """
        body = await self._request(
            "POST",
            "/transaction/initialize",
            json={
                "email": email,
                "amount": amount_minor,
                "reference": reference,
                "callback_url": callback_url or settings.paystack_callback_url,
                "metadata": metadata or {},
            },
        )

        data = body.get("data") or {}
        if body.get("status") is not True or not data.get("authorization_url"):
            message = body.get("message") or "Failed to initialize payment"
            logger.error(f"Paystack rejected initialization for {reference}: {message}")
            raise PaymentGatewayError(message)

        logger.info(f"Initialized Paystack transaction {reference} for {amount_minor} minor units")
        return TransactionInit(
            authorization_url=data["authorization_url"],
            access_code=data.get("access_code"),
            reference=data.get("reference") or reference,
        )

    async def verify_transaction(self, reference: str) -> TransactionVerification:
        """
        Look up a transaction's outcome.

        ``successful`` is True only when the gateway reports
        ``status: true`` and a transaction status of ``success``. An unknown
        reference (a 4xx answer) comes back unsuccessful rather than raising.

        Raises:
            PaymentGatewayError: On transport errors, auth failures and 5xx
        """
        body = await self._request("GET", f"/transaction/verify/{reference}", allow_client_error=True)
        data = body.get("data") or {}
        customer = data.get("customer") or {}

        successful = body.get("status") is True and data.get("status") == "success"

        return TransactionVerification(
            reference=data.get("reference") or reference,
            status=data.get("status"),
            paid_amount=int(data.get("amount") or 0),
            paid_at=_parse_paid_at(data.get("paid_at")),
            channel=data.get("channel"),
            customer_email=customer.get("email"),
            successful=successful,
        )


_gateway: PaystackGateway | None = None


def get_gateway() -> PaystackGateway:
    global _gateway
    if _gateway is None:
        _gateway = PaystackGateway()
    return _gateway
