# backend/schemas/order.py
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus, PaymentType, DeliveryOption, DeliveryType
from models.payment import PaymentProvider


# Inline delivery address supplied at checkout
class AddressIn(BaseModel):
    city: str = Field(min_length=1, max_length=100)
    post_office_address: str = Field(min_length=1, max_length=255)


class AddressOut(BaseModel):
    id: int
    city: str
    post_office_address: str
    delivery_option: DeliveryOption

    class Config:
        from_attributes = True


# Checkout request: either address_id (saved address) or address (new one)
class CheckoutRequest(BaseModel):
    customer_name: str = Field(min_length=1, max_length=100)
    customer_surname: str = Field(min_length=1, max_length=100)
    phone_number: str = Field(pattern=r"^[0-9]+$", max_length=20)
    comment: Optional[str] = Field(default=None, max_length=1000)

    payment_type: PaymentType
    payment_provider: PaymentProvider = PaymentProvider.FONDY
    delivery_option: DeliveryOption
    delivery_type: DeliveryType = DeliveryType.DEPARTMENT

    address_id: Optional[int] = None
    address: Optional[AddressIn] = None

    @field_validator("customer_name", "customer_surname")
    @classmethod
    def title_case(cls, value: str) -> str:
        return value.strip().lower().title()


class OrderCreatedResponse(BaseModel):
    success: str
    order_id: str
    checkout_url: Optional[str] = None


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class PaymentOut(BaseModel):
    transaction_id: int
    masked_card: str
    card_type: str
    amount: Decimal
    currency: str

    class Config:
        from_attributes = True


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: str
    status: OrderStatus
    customer_name: str
    customer_surname: str
    phone_number: str
    comment: Optional[str] = None
    payment_type: PaymentType
    delivery_option: DeliveryOption
    delivery_type: DeliveryType
    total_price: Decimal
    is_paid: bool
    checkout_url: Optional[str] = None
    created_at: Optional[datetime] = None
    address: Optional[AddressOut] = None
    payment: Optional[PaymentOut] = None
    items: List[OrderItemOut]


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


# Schema for lifecycle status updates
class OrderStatusPatch(BaseModel):
    status: OrderStatus
