# backend/services/cart_service.py
import logging
import secrets
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from models.cart import Cart, CartItem
from services.catalog import Catalog
from services.inventory import InventoryGuard
from services.pricing import PricingCalculator
from services.results import Failure, ServiceResult

logger = logging.getLogger(__name__)

NOT_ENOUGH_STOCK = "Not enough stock available for this product"


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


class CartService:
    """Cart mutations for registered users and for anonymous sessions.

    The two flavours differ: an anonymous first add is not
    checked against stock, and anonymous removal drops the whole line while
    a registered user's removal takes one unit off.
    """

    def __init__(self, db: Session):
        self.db = db
        self.catalog = Catalog(db)
        self.inventory = InventoryGuard(db, self.catalog)
        self.pricing = PricingCalculator(db, self.catalog)

    # --- shared helpers ---

    def cart_total(self, cart: Optional[Cart]) -> Decimal:
        if cart is None:
            return Decimal("0.00")
        return self.pricing.total(cart.items)

    @staticmethod
    def _find_line(cart: Cart, product_id: int) -> Optional[CartItem]:
        return next((item for item in cart.items if item.product_id == product_id), None)

    def _add(self, cart: Cart, product_id: int, validate_new_line: bool) -> ServiceResult:
        item = self._find_line(cart, product_id)
        if item is not None:
            new_quantity = item.quantity + 1
            if not self.inventory.is_quantity_valid(product_id, new_quantity):
                self.db.rollback()
                return ServiceResult.fail(Failure.INSUFFICIENT_STOCK, NOT_ENOUGH_STOCK)
            item.quantity = new_quantity
        else:
            if validate_new_line and not self.inventory.is_quantity_valid(product_id, 1):
                self.db.rollback()
                return ServiceResult.fail(Failure.INSUFFICIENT_STOCK, NOT_ENOUGH_STOCK)
            cart.items.append(CartItem(product_id=product_id, quantity=1))

        self.db.commit()
        return ServiceResult.ok("Item added to cart successfully")

    def _set_quantity(self, cart: Cart, item: CartItem, quantity: int) -> ServiceResult:
        if quantity <= 0:
            cart.items.remove(item)
            self.db.commit()
            return ServiceResult.ok("Cart item removed successfully")

        if not self.inventory.is_quantity_valid(item.product_id, quantity):
            return ServiceResult.fail(Failure.INSUFFICIENT_STOCK, "Not enough products in stock for this quantity")

        item.quantity = quantity
        self.db.commit()
        return ServiceResult.ok("Cart item quantity updated successfully")

    # --- registered users ---

    def find_user_cart(self, user_id: int) -> Optional[Cart]:
        return self.db.query(Cart).filter(Cart.user_id == user_id).first()

    def get_user_cart(self, user_id: int) -> Cart:
        # Retrieve the user's cart or create it on first use
        cart = self.find_user_cart(user_id)
        if not cart:
            cart = Cart(user_id=user_id)
            self.db.add(cart)
            self.db.commit()
            self.db.refresh(cart)
        return cart

    def add_item(self, user_id: int, product_id: int) -> ServiceResult:
        try:
            if not self.catalog.product_exists(product_id):
                return ServiceResult.fail(Failure.NOT_FOUND, "The product does not exist")
            cart = self.get_user_cart(user_id)
            return self._add(cart, product_id, validate_new_line=True)
        except Exception:
            self.db.rollback()
            logger.exception("CartService.add_item failed (user=%s, product=%s)", user_id, product_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, "An error occurred while adding item to cart")

    def set_item_quantity(self, user_id: int, item_id: int, quantity: int) -> ServiceResult:
        try:
            cart = self.find_user_cart(user_id)
            if cart is None:
                return ServiceResult.fail(Failure.NOT_FOUND, "Cart not found")
            item = next((it for it in cart.items if it.id == item_id), None)
            if item is None:
                return ServiceResult.fail(Failure.NOT_FOUND, "Cart item does not exist")
            return self._set_quantity(cart, item, quantity)
        except Exception:
            self.db.rollback()
            logger.exception("CartService.set_item_quantity failed (user=%s, item=%s)", user_id, item_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, "An error occurred while updating cart item quantity")

    def decrement_item(self, user_id: int, product_id: int) -> ServiceResult:
        try:
            cart = self.find_user_cart(user_id)
            item = self._find_line(cart, product_id) if cart else None
            if item is None:
                return ServiceResult.fail(Failure.NOT_FOUND, "Item not found in cart")

            if item.quantity - 1 <= 0:
                cart.items.remove(item)
            else:
                item.quantity -= 1
            self.db.commit()
            return ServiceResult.ok("Item removed from cart successfully")
        except Exception:
            self.db.rollback()
            logger.exception("CartService.decrement_item failed (user=%s, product=%s)", user_id, product_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, "An error occurred while removing item from cart")

    # --- anonymous sessions ---

    def get_session_cart(self, session_token: Optional[str]) -> Optional[Cart]:
        if not session_token:
            return None
        return self.db.query(Cart).filter(Cart.session_token == session_token).first()

    def add_session_item(self, session_token: Optional[str], product_id: int) -> ServiceResult:
        try:
            if not self.catalog.product_exists(product_id):
                return ServiceResult.fail(Failure.NOT_FOUND, "The product does not exist")

            cart = self.get_session_cart(session_token)
            if cart is None:
                # Unknown tokens are replaced, never adopted
                cart = Cart(session_token=new_session_token())
                self.db.add(cart)
            token = cart.session_token

            result = self._add(cart, product_id, validate_new_line=False)
            if result.success:
                result.session_token = token
            return result
        except Exception:
            self.db.rollback()
            logger.exception("CartService.add_session_item failed (product=%s)", product_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, "An error occurred while adding item to cart")

    def set_session_item_quantity(self, session_token: Optional[str], product_id: int, quantity: int) -> ServiceResult:
        try:
            cart = self.get_session_cart(session_token)
            if cart is None or not cart.items:
                return ServiceResult.fail(Failure.NOT_FOUND, "The cart does not exist or is empty")
            item = self._find_line(cart, product_id)
            if item is None:
                return ServiceResult.fail(Failure.NOT_FOUND, "The cart item does not exist")
            return self._set_quantity(cart, item, quantity)
        except Exception:
            self.db.rollback()
            logger.exception("CartService.set_session_item_quantity failed (product=%s)", product_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, "An error occurred while updating cart item quantity")

    def remove_session_item(self, session_token: Optional[str], product_id: int) -> ServiceResult:
        try:
            cart = self.get_session_cart(session_token)
            item = self._find_line(cart, product_id) if cart else None
            if item is None:
                return ServiceResult.fail(Failure.NOT_FOUND, "Item not found in cart")
            cart.items.remove(item)
            self.db.commit()
            return ServiceResult.ok("Item removed from cart successfully")
        except Exception:
            self.db.rollback()
            logger.exception("CartService.remove_session_item failed (product=%s)", product_id)
            return ServiceResult.fail(Failure.INTERNAL_ERROR, "An error occurred while removing item from cart")
