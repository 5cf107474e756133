# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Shopping cart: owned by a registered user, or by an anonymous session token
class Cart(Base):
    __tablename__ = "carts" # Table name

    id = Column(Integer, primary_key=True, index=True) # Primary key
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=True) # One cart per user
    session_token = Column(String(64), unique=True, nullable=True) # Anonymous session key
    created_at = Column(DateTime, server_default=func.now()) # Creation timestamp

    # Lines kept in insertion order
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )
    user = relationship("User", back_populates="cart")


# A single line (product + quantity) within a cart
class CartItem(Base):
    __tablename__ = "cart_items" # Table name

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), index=True, nullable=False) # Parent cart
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False) # Product
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False, default=1)

    cart = relationship("Cart", back_populates="items") # Relationship back to Cart
    product = relationship("Product") # Relationship to Product

    __table_args__ = (
        # At most one line per product in a cart; adding again increments quantity
        UniqueConstraint("cart_id", "product_id", name="uq_cartitem_cart_product"),
    )
