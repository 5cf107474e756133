# backend/services/order_service.py
import logging
import uuid
from collections import Counter
from decimal import Decimal
from http import HTTPStatus
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from models.address import Address
from models.cart import Cart
from models.order import Order, OrderItem, OrderStatus, PaymentType, new_order_id
from models.payment import Payment
from schemas.order import CheckoutRequest
from schemas.payment import PaymentCallback
from services.catalog import Catalog
from services.inventory import InventoryGuard
from services.pricing import PricingCalculator
from services.results import Failure, ServiceResult
from utils.payment_gateway import PaymentGateway, payment_gateway

logger = logging.getLogger(__name__)

CREATE_ERROR = "An error occurred while creating the order"
CONFIRM_ERROR = "An error occurred while confirming the order"

# Lifecycle progression after payment; Canceled and Delivered are terminal
STATUS_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
}

Snapshot = List[Tuple[int, int]]


def parse_order_id(raw: Optional[str]) -> Optional[str]:
    """Normalise a provider order id to our 32-char hex form, or None if malformed."""
    if not raw:
        return None
    try:
        parsed = uuid.UUID(str(raw).strip())
    except ValueError:
        return None
    if parsed.int == 0:
        return None
    return parsed.hex


class OrderService:
    """Turns a user's cart into an order and reconciles provider callbacks.

    Order creation runs in two phases. The read phase loads the cart, prices
    it and resolves the address without writing anything, then closes its
    transaction. For card payments the provider is called next, outside any
    transaction. The commit phase re-reads the cart under a row lock, checks it
    still matches what was priced, inserts the order and clears the cart in
    one transaction, so a concurrent checkout of the same cart finds it empty.
    """

    def __init__(self, db: Session, gateway: PaymentGateway = payment_gateway):
        self.db = db
        self.gateway = gateway
        self.catalog = Catalog(db)
        self.inventory = InventoryGuard(db, self.catalog)
        self.pricing = PricingCalculator(db, self.catalog)

    # --- create ---

    async def create_order_authenticated(self, user_id: int, checkout: CheckoutRequest) -> ServiceResult:
        try:
            return await self._create_order_authenticated(user_id, checkout)
        except Exception:
            self.db.rollback()
            logger.exception("OrderService.create_order_authenticated failed (user=%s)", user_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, CREATE_ERROR)

    async def _create_order_authenticated(self, user_id: int, checkout: CheckoutRequest) -> ServiceResult:
        cart = self._load_cart(user_id)
        snapshot = self._snapshot(cart)
        if not snapshot:
            return self._abort(Failure.EMPTY_CART, "Cart is empty")

        total = self.pricing.total(cart.items)
        if total == 0:
            return self._abort(Failure.ZERO_TOTAL, "Total order price is 0")

        for product_id, quantity in snapshot:
            if not self.inventory.is_quantity_valid(product_id, quantity):
                return self._abort(Failure.INSUFFICIENT_STOCK, f"Not enough stock for product {product_id}")

        order = self._build_order(user_id, checkout, snapshot, total)

        failure = self._resolve_address(order, user_id, checkout)
        if failure is not None:
            return failure

        # Nothing is written before the payment branch; release the read transaction
        self.db.rollback()

        if checkout.payment_type == PaymentType.CARD_PAYMENT:
            order.status = OrderStatus.PENDING
            description = f"Payment for order #{order.id}"
            result = await self.gateway.checkout(order.id, description, total, checkout.payment_provider)
            if not result.success:
                logger.warning("Checkout for order %s (user %s) failed: %s", order.id, user_id, result.message)
                return ServiceResult.fail(Failure.GATEWAY_ERROR, result.message)
            order.checkout_url = result.checkout_url
        elif checkout.payment_type == PaymentType.CASH_ON_DELIVERY:
            order.status = OrderStatus.PROCESSING
        else:
            return ServiceResult.fail(Failure.INVALID_PAYMENT_TYPE, "Payment type is not valid")

        return self._commit_order(user_id, order, snapshot)

    def _load_cart(self, user_id: int, for_update: bool = False) -> Optional[Cart]:
        query = self.db.query(Cart).filter(Cart.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def _snapshot(cart: Optional[Cart]) -> Snapshot:
        if cart is None:
            return []
        return [(item.product_id, item.quantity) for item in cart.items]

    def _abort(self, failure: Failure, message: str) -> ServiceResult:
        self.db.rollback()
        return ServiceResult.fail(failure, message)

    def _build_order(self, user_id: int, checkout: CheckoutRequest, snapshot: Snapshot, total: Decimal) -> Order:
        prices = self.pricing.unit_prices(product_id for product_id, _ in snapshot)
        return Order(
            id=new_order_id(),
            user_id=user_id,
            customer_name=checkout.customer_name,
            customer_surname=checkout.customer_surname,
            phone_number=checkout.phone_number,
            comment=checkout.comment,
            delivery_option=checkout.delivery_option,
            delivery_type=checkout.delivery_type,
            payment_type=checkout.payment_type,
            total_price=total,
            is_paid=False,
            items=[
                OrderItem(product_id=product_id, quantity=quantity, unit_price=prices.get(product_id, Decimal("0")))
                for product_id, quantity in snapshot
            ],
        )

    def _resolve_address(self, order: Order, user_id: int, checkout: CheckoutRequest) -> Optional[ServiceResult]:
        if checkout.address_id:
            address = (
                self.db.query(Address)
                .filter(Address.id == checkout.address_id, Address.user_id == user_id)
                .first()
            )
            if address is None:
                return self._abort(Failure.INVALID_ADDRESS, "Invalid address ID")
            order.delivery_address_id = address.id
        elif checkout.address is not None:
            order.address = Address(
                user_id=user_id,
                city=checkout.address.city,
                post_office_address=checkout.address.post_office_address,
                delivery_option=checkout.delivery_option,
            )
        else:
            return self._abort(Failure.ADDRESS_REQUIRED, "Address is required")
        return None

    def _commit_order(self, user_id: int, order: Order, snapshot: Snapshot) -> ServiceResult:
        try:
            cart = self._load_cart(user_id, for_update=True)
            current = self._snapshot(cart)
            if not current:
                return self._abort(Failure.EMPTY_CART, "Cart is empty")
            if Counter(current) != Counter(snapshot):
                return self._abort(Failure.CART_CHANGED, "Cart changed during checkout, please try again")

            self.db.add(order)
            cart.items.clear()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Order %s created for user %s (%s, total %s)",
            order.id, user_id, order.payment_type.value, order.total_price,
        )
        return ServiceResult.ok(
            "Order created",
            status_code=HTTPStatus.CREATED,
            order_id=order.id,
            checkout_url=order.checkout_url,
        )

    # --- confirm ---

    def confirm_order(self, callback: PaymentCallback) -> ServiceResult:
        try:
            return self._confirm_order(callback)
        except Exception:
            self.db.rollback()
            logger.exception("OrderService.confirm_order failed (order=%s)", callback.order_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, CONFIRM_ERROR)

    def _confirm_order(self, callback: PaymentCallback) -> ServiceResult:
        if not callback.is_success:
            return ServiceResult.fail(Failure.INVALID_CALLBACK, "Response status is not success")

        order_id = parse_order_id(callback.order_id)
        if order_id is None:
            return ServiceResult.fail(Failure.INVALID_CALLBACK, "Order id is empty or malformed")

        # Row lock so concurrent deliveries of the same callback run one after the other
        order = (
            self.db.query(Order)
            .filter(Order.id == order_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if order is None:
            return ServiceResult.fail(Failure.NOT_FOUND, "Order not found")

        if order.status != OrderStatus.PENDING:
            return self._reconciled_or_conflict(order, callback)

        if not callback.is_approved:
            order.status = OrderStatus.CANCELED
            logger.info("Order %s canceled by provider (order_status=%s)", order.id, callback.order_status)
        else:
            order.payment = Payment(
                transaction_id=callback.payment_id,
                masked_card=callback.masked_card,
                card_type=callback.card_type,
                amount=(Decimal(callback.amount) / 100).quantize(Decimal("0.01")),
                currency=callback.currency,
            )
            order.is_paid = True
            order.checkout_url = None
            order.status = OrderStatus.PROCESSING
            logger.info("Order %s paid (transaction %s)", order.id, callback.payment_id)

        self.db.commit()
        return ServiceResult.ok("Order confirmed", order_id=order.id)

    def _reconciled_or_conflict(self, order: Order, callback: PaymentCallback) -> ServiceResult:
        """Callback for an order that already left PENDING.

        A repeat of the outcome already recorded is acknowledged without changes.
        Anything else (an approval for a canceled or unpaid order, a decline for
        a paid one) is refused and logged.
        """
        order_id, status, is_paid = order.id, order.status, order.is_paid
        # Release the row lock; nothing changes here
        self.db.rollback()

        if callback.is_approved:
            already_recorded = is_paid
        else:
            already_recorded = status == OrderStatus.CANCELED

        if already_recorded:
            logger.info("Ignoring repeated callback for order %s in status %s", order_id, status.value)
            return ServiceResult.ok("Order already reconciled", order_id=order_id)

        logger.warning(
            "Conflicting callback for order %s in status %s (order_status=%s, payment_id=%s)",
            order_id, status.value, callback.order_status, callback.payment_id,
        )
        return ServiceResult.fail(Failure.CALLBACK_CONFLICT, f"Order is already {status.value}", order_id=order_id)

    # --- lifecycle ---

    def advance_status(self, order_id: str, new_status: OrderStatus) -> ServiceResult:
        try:
            order = self.db.get(Order, order_id)
            if order is None:
                return ServiceResult.fail(Failure.NOT_FOUND, "Order not found")

            if new_status not in STATUS_TRANSITIONS.get(order.status, set()):
                return ServiceResult.fail(
                    Failure.INVALID_STATUS_TRANSITION,
                    f"Cannot change status from {order.status.value} to {new_status.value}",
                )

            order.status = new_status
            self.db.commit()
            return ServiceResult.ok(f"Order status updated to {new_status.value}", order_id=order.id)
        except Exception:
            self.db.rollback()
            logger.exception("OrderService.advance_status failed (order=%s)", order_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, "An error occurred while updating order status")
