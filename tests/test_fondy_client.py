"""Tests for the Fondy checkout client and request signing."""

import hashlib
import json
from decimal import Decimal

import httpx
import pytest

from models.payment import PaymentProvider
from utils.fondy_client import (
    CHECKOUT_ERROR,
    CheckoutResult,
    FondyClient,
    build_signature,
    to_minor_units,
    verify_callback_signature,
)
from utils.payment_gateway import PaymentGateway, UnimplementedProviderClient


def client_returning(handler):
    return FondyClient(transport=httpx.MockTransport(handler))


class TestSignature:
    def test_sorted_non_empty_values(self):
        params = {"order_id": "abc", "amount": 2000, "currency": "UAH", "comment": "", "merchant_id": "1396424"}
        expected = hashlib.sha1("secret|2000|UAH|1396424|abc".encode("utf-8")).hexdigest()
        assert build_signature(params, "secret") == expected

    def test_signature_fields_are_ignored(self):
        params = {"order_id": "abc", "amount": 2000}
        signed = dict(params, signature="x", response_signature_string="y")
        assert build_signature(signed, "secret") == build_signature(params, "secret")

    def test_verify_callback(self):
        payload = {"order_id": "abc", "response_status": "success", "amount": 2000}
        payload["signature"] = build_signature(payload, "test")
        assert verify_callback_signature(payload, "test") is True

        payload["amount"] = 1
        assert verify_callback_signature(payload, "test") is False

    def test_missing_signature(self):
        assert verify_callback_signature({"order_id": "abc"}, "test") is False


class TestMinorUnits:
    @pytest.mark.parametrize("amount,expected", [
        (Decimal("20.00"), 2000),
        (Decimal("0.01"), 1),
        (Decimal("19.995"), 2000),
    ])
    def test_conversion(self, amount, expected):
        assert to_minor_units(amount) == expected


class TestFondyClient:
    def test_build_request(self):
        body = FondyClient().build_request("abc", "Payment for order #abc", Decimal("20.00"))
        request = body["request"]
        assert request["order_id"] == "abc"
        assert request["amount"] == 2000
        assert request["order_desc"] == "Payment for order #abc"
        assert request["server_callback_url"].endswith("/orders/confirm-order")
        assert request["signature"] == build_signature(request, "test")

    @pytest.mark.anyio
    async def test_checkout_success(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "response": {"response_status": "success", "checkout_url": "https://pay.fondy.eu/merchants/x"}
            })

        result = await client_returning(handler).checkout("abc", "Payment for order #abc", Decimal("12.50"))

        assert result.success
        assert result.checkout_url == "https://pay.fondy.eu/merchants/x"
        assert seen["body"]["request"]["amount"] == 1250

    @pytest.mark.anyio
    async def test_checkout_rejected(self):
        def handler(request):
            return httpx.Response(200, json={
                "response": {"response_status": "failure", "error_message": "Invalid merchant", "error_code": 1002}
            })

        result = await client_returning(handler).checkout("abc", "desc", Decimal("1.00"))

        assert not result.success
        assert result.message == "Invalid merchant"

    @pytest.mark.anyio
    async def test_http_error(self):
        result = await client_returning(lambda request: httpx.Response(500)).checkout("abc", "desc", Decimal("1.00"))
        assert not result.success
        assert result.message == CHECKOUT_ERROR

    @pytest.mark.anyio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = await client_returning(handler).checkout("abc", "desc", Decimal("1.00"))
        assert result.message == "Payment provider timed out"

    @pytest.mark.anyio
    async def test_non_json_response(self):
        result = await client_returning(lambda request: httpx.Response(200, text="<html>")).checkout(
            "abc", "desc", Decimal("1.00")
        )
        assert result.message == CHECKOUT_ERROR

    @pytest.mark.anyio
    async def test_missing_response_object(self):
        result = await client_returning(lambda request: httpx.Response(200, json=[1, 2])).checkout(
            "abc", "desc", Decimal("1.00")
        )
        assert result.message == CHECKOUT_ERROR


class ExplodingClient:
    async def checkout(self, order_id, description, amount):
        raise RuntimeError("boom")


class TestPaymentGateway:
    @pytest.mark.anyio
    async def test_routes_to_registered_client(self):
        class StubClient:
            async def checkout(self, order_id, description, amount):
                return CheckoutResult.ok(f"https://pay.example/{order_id}")

        gateway = PaymentGateway({PaymentProvider.FONDY: StubClient()})
        result = await gateway.checkout("abc", "desc", Decimal("1.00"), PaymentProvider.FONDY)
        assert result.checkout_url == "https://pay.example/abc"

    @pytest.mark.anyio
    async def test_register_replaces_default_client(self):
        class StubClient:
            async def checkout(self, order_id, description, amount):
                return CheckoutResult.ok("https://liqpay.example/checkout")

        gateway = PaymentGateway()
        gateway.register(PaymentProvider.LIQPAY, StubClient())

        result = await gateway.checkout("abc", "desc", Decimal("1.00"), PaymentProvider.LIQPAY)
        assert result.success
        assert result.checkout_url == "https://liqpay.example/checkout"

    @pytest.mark.anyio
    async def test_unregistered_provider(self):
        gateway = PaymentGateway({})
        result = await gateway.checkout("abc", "desc", Decimal("1.00"), PaymentProvider.FONDY)
        assert not result.success

    @pytest.mark.anyio
    async def test_unimplemented_provider(self):
        gateway = PaymentGateway({PaymentProvider.LIQPAY: UnimplementedProviderClient(PaymentProvider.LIQPAY)})
        result = await gateway.checkout("abc", "desc", Decimal("1.00"), PaymentProvider.LIQPAY)
        assert result.message == "Payment provider 'liqpay' is not implemented"

    @pytest.mark.anyio
    async def test_client_exception_becomes_failure(self):
        gateway = PaymentGateway({PaymentProvider.FONDY: ExplodingClient()})
        result = await gateway.checkout("abc", "desc", Decimal("1.00"), PaymentProvider.FONDY)
        assert not result.success
        assert result.message == CHECKOUT_ERROR
