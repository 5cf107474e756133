from .users import User
from .product import Product
from .order import Order, OrderItem, OrderStatus, PaymentType, DeliveryOption, DeliveryType
from .address import Address
from .cart import Cart, CartItem
from .payment import Payment, PaymentProvider
from .log import Log

__all__ = [
    "User",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentType",
    "DeliveryOption",
    "DeliveryType",
    "Address",
    "Cart",
    "CartItem",
    "Payment",
    "PaymentProvider",
    "Log",
]
