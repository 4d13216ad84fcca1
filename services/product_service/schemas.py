from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from shared.schemas import Page


class ProductCreate(BaseModel):
    name: str = Field(min_length=3)
    slug: str = Field(min_length=3)
    category: str = Field(min_length=3)
    brand: str = Field(min_length=3)
    description: str = Field(min_length=3)
    stock: int
    images: List[str] = Field(min_length=1)
    is_featured: bool = False
    banner: Optional[str] = None
    price: Decimal = Field(ge=0, decimal_places=2)


class ProductUpdate(ProductCreate):
    pass


class ProductResponse(BaseModel):
    id: str
    name: str
    slug: str
    category: str
    brand: str
    description: str
    images: List[str]
    is_featured: bool
    banner: Optional[str]
    price: Decimal
    stock: int
    rating: Decimal
    num_reviews: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


ProductPage = Page[ProductResponse]


class CategoryCount(BaseModel):
    category: str
    count: int
