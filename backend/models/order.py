# backend/models/order.py
import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, Numeric, Boolean, Text, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from database import Base


class OrderStatus(PyEnum):
    PENDING = "pending"  # Card payment, waiting for the provider callback
    PROCESSING = "processing"  # Paid or cash on delivery
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"  # Declined by the provider


class PaymentType(PyEnum):
    CARD_PAYMENT = "card_payment"
    CASH_ON_DELIVERY = "cash_on_delivery"


class DeliveryOption(PyEnum):
    NOVA_POSHTA = "nova_poshta"
    UKR_POSHTA = "ukr_poshta"


class DeliveryType(PyEnum):
    DEPARTMENT = "department"
    PARCEL_LOCKER = "parcel_locker"
    COURIER = "courier"


def new_order_id() -> str:
    return uuid.uuid4().hex


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, index=True, default=new_order_id)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Customer details
    customer_name = Column(String, nullable=False)
    customer_surname = Column(String, nullable=False)
    phone_number = Column(String(20), nullable=False)
    comment = Column(Text, nullable=True)

    # Delivery
    delivery_address_id = Column(Integer, ForeignKey("addresses.id"), nullable=False)
    delivery_option = Column(Enum(DeliveryOption), nullable=False)
    delivery_type = Column(Enum(DeliveryType), nullable=False, default=DeliveryType.DEPARTMENT)

    # Payment
    payment_type = Column(Enum(PaymentType), nullable=False)
    status = Column(Enum(OrderStatus), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    checkout_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    address = relationship("Address")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    payment = relationship("Payment", back_populates="order", uselist=False, cascade="all, delete-orphan")


# Snapshot of a cart line taken at checkout; later cart or catalog edits do not touch it
class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
