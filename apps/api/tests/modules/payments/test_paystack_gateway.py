"""
Tests for the Paystack client using httpx.MockTransport.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal

import httpx
import pytest

from app.modules.payments.gateway import PaymentGatewayError, PaystackGateway, to_minor_units


def _gateway(handler) -> PaystackGateway:
    return PaystackGateway(
        secret_key="sk_test_123",
        base_url="https://api.paystack.test",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestToMinorUnits:
    def test_whole_amount(self):
        assert to_minor_units(Decimal("100000.00")) == 10_000_000

    def test_rounds_half_up(self):
        assert to_minor_units(Decimal("10.005")) == 1001


class TestInitializeTransaction:
    """Tests for PaystackGateway.initialize_transaction."""

    @pytest.mark.asyncio
    async def test_sends_amount_in_minor_units(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": "https://checkout.paystack.com/abc123",
                        "access_code": "abc123",
                        "reference": "REF-1",
                    },
                },
            )

        result = await _gateway(handler).initialize_transaction(
            email="ada@example.com",
            amount_minor=10_000_000,
            reference="REF-1",
            metadata={"application_id": 10},
        )

        assert result.authorization_url == "https://checkout.paystack.com/abc123"
        assert result.access_code == "abc123"
        assert seen["path"] == "/transaction/initialize"
        assert seen["auth"] == "Bearer sk_test_123"
        assert seen["body"]["amount"] == 10_000_000
        assert seen["body"]["metadata"] == {"application_id": 10}

    @pytest.mark.asyncio
    async def test_rejected_initialization(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": False, "message": "Invalid email"})

        with pytest.raises(PaymentGatewayError) as exc_info:
            await _gateway(handler).initialize_transaction("bad", 100, "REF-2")

        assert exc_info.value.message == "Invalid email"
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_http_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="upstream down")

        with pytest.raises(PaymentGatewayError):
            await _gateway(handler).initialize_transaction("ada@example.com", 100, "REF-3")

    @pytest.mark.asyncio
    async def test_missing_secret_key(self):
        gateway = PaystackGateway(secret_key="", base_url="https://api.paystack.test")

        with pytest.raises(PaymentGatewayError):
            await gateway.initialize_transaction("ada@example.com", 100, "REF-4")


class TestVerifyTransaction:
    """Tests for PaystackGateway.verify_transaction."""

    @pytest.mark.asyncio
    async def test_successful_transaction(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/transaction/verify/REF-1"
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "data": {
                        "reference": "REF-1",
                        "status": "success",
                        "amount": 10_000_000,
                        "paid_at": "2026-02-02T09:30:00.000Z",
                        "channel": "card",
                        "customer": {"email": "ada@example.com"},
                    },
                },
            )

        result = await _gateway(handler).verify_transaction("REF-1")

        assert result.successful is True
        assert result.paid_amount == 10_000_000
        assert result.paid_at == datetime(2026, 2, 2, 9, 30, tzinfo=UTC)
        assert result.channel == "card"
        assert result.customer_email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_abandoned_transaction_is_not_successful(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"status": True, "data": {"reference": "REF-2", "status": "abandoned", "amount": 0}},
            )

        result = await _gateway(handler).verify_transaction("REF-2")

        assert result.successful is False
        assert result.status == "abandoned"
        assert result.paid_at is None

    @pytest.mark.asyncio
    async def test_unreachable_gateway(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PaymentGatewayError) as exc_info:
            await _gateway(handler).verify_transaction("REF-3")

        assert exc_info.value.message == "Payment gateway is unreachable."

    @pytest.mark.asyncio
    async def test_unknown_reference_is_not_successful(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={"status": False, "message": "Transaction reference not found", "data": None},
            )

        result = await _gateway(handler).verify_transaction("REF-404")

        assert result.successful is False
        assert result.reference == "REF-404"
        assert result.status is None
        assert result.paid_amount == 0

    @pytest.mark.asyncio
    async def test_unknown_reference_without_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="Not Found")

        result = await _gateway(handler).verify_transaction("REF-405")

        assert result.successful is False

    @pytest.mark.asyncio
    async def test_auth_failure_still_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"status": False, "message": "Invalid key"})

        with pytest.raises(PaymentGatewayError) as exc_info:
            await _gateway(handler).verify_transaction("REF-5")

        assert exc_info.value.message == "Payment gateway error: 401"

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="maintenance")

        with pytest.raises(PaymentGatewayError):
            await _gateway(handler).verify_transaction("REF-6")
