from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from shared.config.settings import PAYMENT_METHODS
from shared.schemas import Page

from services.user_service.schemas import ShippingAddress

Money = Decimal


class PaymentResult(BaseModel):
    """Receipt returned by a payment gateway."""
    id: str
    status: str
    price_paid: str
    email_address: str


class InsertOrder(BaseModel):
    user_id: str = Field(min_length=1)
    shipping_address: ShippingAddress
    payment_method: str
    items_price: Money = Field(ge=0, decimal_places=2)
    shipping_price: Money = Field(ge=0, decimal_places=2)
    tax_price: Money = Field(ge=0, decimal_places=2)
    total_price: Money = Field(ge=0, decimal_places=2)

    @field_validator("payment_method")
    @classmethod
    def known_method(cls, value: str) -> str:
        if value not in PAYMENT_METHODS:
            raise ValueError("Invalid payment method")
        return value

    @model_validator(mode="after")
    def total_adds_up(self):
        if self.total_price != self.items_price + self.shipping_price + self.tax_price:
            raise ValueError("Total price must equal items + shipping + tax")
        return self


class OrderItemResponse(BaseModel):
    product_id: str
    name: str
    slug: str
    image: str
    price: Money
    qty: int

    class Config:
        from_attributes = True


class OrderUser(BaseModel):
    name: str
    email: str

    class Config:
        from_attributes = True


class OrderListItem(BaseModel):
    id: str
    created_at: Optional[datetime] = None
    total_price: Money
    is_paid: bool
    paid_at: Optional[datetime] = None
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    user: Optional[OrderUser] = None

    class Config:
        from_attributes = True


class OrderResponse(OrderListItem):
    user_id: str
    shipping_address: ShippingAddress
    payment_method: str
    payment_result: Optional[PaymentResult] = None
    items_price: Money
    shipping_price: Money
    tax_price: Money
    items: List[OrderItemResponse] = []


OrderPage = Page[OrderListItem]


class MonthlySales(BaseModel):
    month: str # MM/YY
    total_sales: Money


class SalesSummary(BaseModel):
    orders_count: int
    products_count: int
    users_count: int
    total_sales: Money
    sales_data: List[MonthlySales]
    latest_sales: List[OrderListItem]
