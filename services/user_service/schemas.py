from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from shared.config.settings import PAYMENT_METHODS
from shared.schemas import Page


class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=1)
    street_address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)
    lat: Optional[float] = None
    lng: Optional[float] = None


class SignUpRequest(BaseModel):
    name: str = Field(min_length=3)
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str = Field(min_length=6)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class PaymentMethodOptions(BaseModel):
    """Current choice (or the store default) plus the accepted methods."""
    type: str
    methods: List[str]


class PaymentMethodUpdate(BaseModel):
    type: str = Field(min_length=1)

    @field_validator("type")
    @classmethod
    def known_method(cls, value: str) -> str:
        if value not in PAYMENT_METHODS:
            raise ValueError("Invalid payment method")
        return value


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=3)


class UserUpdate(BaseModel):
    """Admin edit of another account."""
    name: str = Field(min_length=3)
    role: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    address: Optional[ShippingAddress] = None
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


UserPage = Page[UserResponse]
