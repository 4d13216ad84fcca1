import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.sql import func

from shared.config.database import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_cart_id = Column(String(64), nullable=False, index=True) # sessionCartId cookie
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    # Line items live in a JSON list; the cart is replaced wholesale on every write
    items = Column(JSON, nullable=False, default=list)
    items_price = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_price = Column(Numeric(12, 2), nullable=False, default=0)
    tax_price = Column(Numeric(12, 2), nullable=False, default=0)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"eager_defaults": True}
