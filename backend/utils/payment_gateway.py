# backend/utils/payment_gateway.py
import logging
from decimal import Decimal
from typing import Dict, Optional

from models.payment import PaymentProvider
from utils.fondy_client import CheckoutResult, FondyClient, CHECKOUT_ERROR

logger = logging.getLogger(__name__)


class UnimplementedProviderClient:
    """Placeholder for a provider we know about but have not integrated yet."""

    def __init__(self, provider: PaymentProvider):
        self.provider = provider

    async def checkout(self, order_id: str, description: str, amount: Decimal) -> CheckoutResult:
        logger.warning("Checkout requested through %s, which is not implemented", self.provider.value)
        return CheckoutResult.failure(f"Payment provider '{self.provider.value}' is not implemented")


class PaymentGateway:
    """Routes a checkout to the client registered for the selected provider.

    A client is any object with ``async checkout(order_id, description, amount)``
    returning a CheckoutResult; register new providers instead of branching here.
    """

    def __init__(self, clients: Optional[Dict[PaymentProvider, object]] = None):
        self.clients = dict(clients) if clients is not None else {
            PaymentProvider.FONDY: FondyClient(),
            PaymentProvider.LIQPAY: UnimplementedProviderClient(PaymentProvider.LIQPAY),
        }

    def register(self, provider: PaymentProvider, client) -> None:
        self.clients[provider] = client

    async def checkout(
        self, order_id: str, description: str, amount: Decimal, provider: PaymentProvider
    ) -> CheckoutResult:
        client = self.clients.get(provider)
        if client is None:
            return CheckoutResult.failure(f"Unknown payment provider: {provider}")
        try:
            return await client.checkout(order_id, description, amount)
        except Exception:
            logger.exception("Payment provider %s failed for order %s", provider, order_id)
            return CheckoutResult.failure(CHECKOUT_ERROR)


payment_gateway = PaymentGateway()
