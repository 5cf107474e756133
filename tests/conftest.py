"""Pytest fixtures for the storefront backend tests."""

import os

# Settings are read at import time, so the environment has to be in place first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["FONDY_MERCHANT_PASSWORD"] = "test"
os.environ["FONDY_VERIFY_CALLBACK_SIGNATURE"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import models  # noqa: F401
from database import Base, SessionLocal, engine, get_db
from models.address import Address
from models.cart import Cart, CartItem
from models.order import DeliveryOption, Order, OrderItem, OrderStatus, PaymentType
from models.product import Product
from models.users import User
from utils.fondy_client import CheckoutResult
from utils.tokenJWT import create_access_token


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    """A session on a fresh in-memory schema."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


class FakeGateway:
    """Stands in for PaymentGateway; records calls and returns a canned result."""

    def __init__(self, result=None, on_checkout=None):
        self.result = result or CheckoutResult.ok("https://pay.example/checkout/abc")
        self.on_checkout = on_checkout
        self.calls = []

    async def checkout(self, order_id, description, amount, provider):
        self.calls.append(
            {"order_id": order_id, "description": description, "amount": amount, "provider": provider}
        )
        if self.on_checkout is not None:
            self.on_checkout()
        return self.result


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="customer", email=None):
        counter["n"] += 1
        user = User(email=email or f"user{counter['n']}@example.com", role=role, first_name="Test", last_name="User")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def make_product(db):
    def _make(price="10.00", stock=5, name="Lamp"):
        product = Product(name=name, price=Decimal(price), stock_quantity=stock)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_address(db):
    def _make(user, city="Kyiv", post_office_address="Branch 12"):
        address = Address(
            user_id=user.id,
            city=city,
            post_office_address=post_office_address,
            delivery_option=DeliveryOption.NOVA_POSHTA,
        )
        db.add(address)
        db.commit()
        db.refresh(address)
        return address

    return _make


@pytest.fixture
def fill_cart(db):
    """Put lines straight into a user's cart, bypassing stock checks."""

    def _fill(user, lines):
        cart = db.query(Cart).filter(Cart.user_id == user.id).first()
        if cart is None:
            cart = Cart(user_id=user.id)
            db.add(cart)
        for product, quantity in lines:
            cart.items.append(CartItem(product_id=product.id, quantity=quantity))
        db.commit()
        db.refresh(cart)
        return cart

    return _fill


@pytest.fixture
def make_order(db):
    def _make(user, address, product, status=OrderStatus.PENDING, quantity=2):
        order = Order(
            user_id=user.id,
            customer_name="Ivan",
            customer_surname="Petrenko",
            phone_number="380501234567",
            delivery_address_id=address.id,
            delivery_option=DeliveryOption.NOVA_POSHTA,
            payment_type=PaymentType.CARD_PAYMENT,
            status=status,
            total_price=Decimal(product.price) * quantity,
            is_paid=False,
            checkout_url="https://pay.example/checkout/abc",
            items=[OrderItem(product_id=product.id, quantity=quantity, unit_price=product.price)],
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}

    return _headers


@pytest.fixture
def client(db, gateway):
    """TestClient sharing the test session and the fake payment gateway."""
    from main import app
    from routes.dependencies import get_payment_gateway

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
