import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shared.config.database import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String(50), nullable=False)
    payment_result = Column(JSON, nullable=True) # gateway receipt, see PaymentResult
    # Money is fixed at creation: total = items + shipping + tax
    items_price = Column(Numeric(12, 2), nullable=False)
    shipping_price = Column(Numeric(12, 2), nullable=False)
    tax_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    is_delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin"
    )
    user = relationship("User", lazy="selectin")

    __mapper_args__ = {"eager_defaults": True}


class OrderItem(Base):
    """Product snapshot at purchase time; later product edits do not touch it."""
    __tablename__ = "order_items"

    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True)
    product_id = Column(String(36), primary_key=True, index=True)
    qty = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    image = Column(String(512), nullable=False)

    order = relationship("Order", back_populates="items")
