# backend/utils/fondy_client.py
import hashlib
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from urllib.parse import urljoin

import httpx

from config import settings

logger = logging.getLogger(__name__)

CHECKOUT_ERROR = "An error occurred while checking out"

# Fields Fondy never includes in its own signature calculation
UNSIGNED_FIELDS = {"signature", "response_signature_string"}


@dataclass
class CheckoutResult:
    success: bool
    message: str = ""
    checkout_url: Optional[str] = None

    @classmethod
    def ok(cls, checkout_url: str) -> "CheckoutResult":
        return cls(success=True, message="Checkout session created", checkout_url=checkout_url)

    @classmethod
    def failure(cls, message: str) -> "CheckoutResult":
        return cls(success=False, message=message)


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_signature(params: dict, password: str) -> str:
    """SHA-1 over the merchant password and every non-empty value, ordered by key."""
    values = [
        str(value)
        for key, value in sorted(params.items())
        if key not in UNSIGNED_FIELDS and value not in (None, "")
    ]
    return hashlib.sha1("|".join([password, *values]).encode("utf-8")).hexdigest()


def verify_callback_signature(payload: dict, password: str) -> bool:
    signature = payload.get("signature")
    if not signature:
        return False
    return build_signature(payload, password) == signature


class FondyClient:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # Initialize configuration and callback URLs
        self.api_url = settings.FONDY_API_URL
        self.merchant_id = settings.FONDY_MERCHANT_ID
        self.merchant_password = settings.FONDY_MERCHANT_PASSWORD
        self.currency = settings.FONDY_CURRENCY
        self.timeout = settings.FONDY_TIMEOUT_SECONDS
        self.callback_url = urljoin(settings.BACKEND_URL, "/orders/confirm-order")
        self.response_url = urljoin(settings.FRONTEND_URL, "/orders")
        self.transport = transport

    def build_request(self, order_id: str, description: str, amount: Decimal) -> dict:
        request_data = {
            "order_id": order_id,
            "merchant_id": self.merchant_id,
            "order_desc": description,
            "amount": to_minor_units(amount),
            "currency": self.currency,
            "server_callback_url": self.callback_url,
            "response_url": self.response_url,
        }
        request_data["signature"] = build_signature(request_data, self.merchant_password)
        return {"request": request_data}

    async def checkout(self, order_id: str, description: str, amount: Decimal) -> CheckoutResult:
        """Open a hosted checkout session; never raises."""
        body = self.build_request(order_id, description, amount)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException:
            logger.error("Fondy checkout timed out for order %s", order_id)
            return CheckoutResult.failure("Payment provider timed out")
        except (httpx.RequestError, httpx.HTTPStatusError) as e:
            logger.error(f"Fondy checkout error for order {order_id}: {e}")
            return CheckoutResult.failure(CHECKOUT_ERROR)
        except ValueError:
            logger.error("Fondy returned a non-JSON response for order %s", order_id)
            return CheckoutResult.failure(CHECKOUT_ERROR)

        result = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(result, dict):
            logger.error("Fondy response for order %s has no 'response' object", order_id)
            return CheckoutResult.failure(CHECKOUT_ERROR)

        if result.get("response_status") == "success" and result.get("checkout_url"):
            return CheckoutResult.ok(result["checkout_url"])

        logger.warning(
            "Fondy rejected checkout for order %s: %s (code %s)",
            order_id, result.get("error_message"), result.get("error_code"),
        )
        return CheckoutResult.failure(result.get("error_message") or CHECKOUT_ERROR)
