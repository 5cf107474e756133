# backend/services/inventory.py
from sqlalchemy.orm import Session

from services.catalog import Catalog


class InventoryGuard:
    def __init__(self, db: Session, catalog: Catalog = None):
        self.catalog = catalog or Catalog(db)

    def is_quantity_valid(self, product_id: int, quantity: int) -> bool:
        # Unknown products never have enough stock
        stock = self.catalog.get_stock(product_id)
        return stock is not None and stock >= quantity
