# backend/services/pricing.py
from decimal import Decimal
from typing import Dict, Iterable

from sqlalchemy.orm import Session

from services.catalog import Catalog


class PricingCalculator:
    """Totals are always computed from current catalog prices."""

    def __init__(self, db: Session, catalog: Catalog = None):
        self.catalog = catalog or Catalog(db)

    def unit_prices(self, product_ids: Iterable[int]) -> Dict[int, Decimal]:
        return self.catalog.get_prices(product_ids)

    def total(self, items) -> Decimal:
        items = list(items)
        prices = self.unit_prices(item.product_id for item in items)
        # Lines whose product has been removed from the catalog add nothing
        total = sum(
            (prices[item.product_id] * item.quantity for item in items if item.product_id in prices),
            Decimal("0"),
        )
        return total.quantize(Decimal("0.01"))
