# backend/services/catalog.py
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from models.product import Product


class Catalog:
    """Read-only product lookups used by the cart and checkout flows."""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db.get(Product, product_id)

    def product_exists(self, product_id: int) -> bool:
        return self.get_product(product_id) is not None

    def get_stock(self, product_id: int) -> Optional[int]:
        product = self.get_product(product_id)
        return product.stock_quantity if product else None

    def get_price(self, product_id: int) -> Optional[Decimal]:
        product = self.get_product(product_id)
        return Decimal(product.price) if product else None

    def get_prices(self, product_ids: Iterable[int]) -> Dict[int, Decimal]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.db.query(Product.id, Product.price).filter(Product.id.in_(ids)).all()
        return {product_id: Decimal(price) for product_id, price in rows}
