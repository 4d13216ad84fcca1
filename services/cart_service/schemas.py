from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class CartItem(BaseModel):
    """Product snapshot held in a cart and later copied into an order."""
    product_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    qty: int = Field(ge=0)
    image: str = Field(min_length=1)
    price: Decimal = Field(ge=0, decimal_places=2)


class CartItemCreate(BaseModel):
    product_id: str = Field(min_length=1)


class CartPrices(BaseModel):
    items_price: Decimal
    shipping_price: Decimal
    tax_price: Decimal
    total_price: Decimal


class CartResponse(BaseModel):
    id: str
    session_cart_id: str
    user_id: Optional[str]
    items: List[CartItem] = []
    items_price: Decimal
    shipping_price: Decimal
    tax_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True
