from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    product_id: str = Field(min_length=1)
    title: str = Field(min_length=3)
    description: str = Field(min_length=3)
    rating: int = Field(ge=1, le=5)


class Reviewer(BaseModel):
    name: str

    class Config:
        from_attributes = True


class ReviewResponse(BaseModel):
    id: str
    product_id: str
    user_id: str
    rating: int
    title: str
    description: str
    is_verified_purchase: bool
    created_at: Optional[datetime] = None
    user: Optional[Reviewer] = None

    class Config:
        from_attributes = True


class ReviewList(BaseModel):
    data: List[ReviewResponse]
