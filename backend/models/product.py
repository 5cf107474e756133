# backend/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, CheckConstraint
from database import Base

# Catalog product as seen by the checkout flow.
# Price and stock are read live on every cart total and stock check,
# so edits here are picked up by open carts immediately.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)

    image_url = Column(String, nullable=True)
