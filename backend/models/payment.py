# backend/models/payment.py
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, BigInteger, String, Numeric, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


class PaymentProvider(PyEnum):
    FONDY = "fondy"
    LIQPAY = "liqpay"


# Settled card payment, created only when the provider approves the order
class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(32), ForeignKey("orders.id"), unique=True, nullable=False)

    # Provider-side details from the confirmation callback
    transaction_id = Column(BigInteger, nullable=False)
    masked_card = Column(String(32), nullable=False)
    card_type = Column(String(32), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="payment")
