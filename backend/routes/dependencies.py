# backend/routes/dependencies.py
from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from services.cart_service import CartService
from services.order_service import OrderService
from utils.payment_gateway import PaymentGateway, payment_gateway


def get_payment_gateway() -> PaymentGateway:
    return payment_gateway


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_order_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> OrderService:
    return OrderService(db, gateway)
