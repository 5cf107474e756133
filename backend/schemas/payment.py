# backend/schemas/payment.py
from pydantic import BaseModel, field_validator, model_validator
from typing import Optional

# Fields that must be present before an approved payment can be recorded
PAYMENT_FIELDS = ("order_id", "currency", "masked_card", "amount", "card_type", "payment_id")


class PaymentCallback(BaseModel):
    """Server callback posted by the payment provider.

    Unknown fields are kept (the provider adds new ones over time); the
    payment fields are only required when the order was approved.
    """

    response_status: str
    order_status: Optional[str] = None
    order_id: Optional[str] = None
    currency: Optional[str] = None
    masked_card: Optional[str] = None
    amount: Optional[int] = None  # minor units
    card_type: Optional[str] = None
    payment_id: Optional[int] = None
    signature: Optional[str] = None

    class Config:
        extra = "allow"

    # The provider sends "" for fields it has no value for
    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def require_payment_fields(self):
        if self.is_approved:
            missing = [name for name in PAYMENT_FIELDS if getattr(self, name) is None]
            if missing:
                raise ValueError(f"Missing required payment fields: {', '.join(missing)}")
        return self

    @property
    def is_success(self) -> bool:
        return self.response_status == "success"

    @property
    def is_approved(self) -> bool:
        return self.is_success and self.order_status == "approved"
