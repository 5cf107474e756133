# backend/schemas/cart.py
from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional

# Response schema for a single cart line item (prices are live catalog prices)
class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    class Config:
        from_attributes = True

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    total: Decimal
    message: Optional[str] = None
    session_token: Optional[str] = None
