import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from shared.config.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    category = Column(String(255), nullable=False, index=True)
    brand = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    is_featured = Column(Boolean, nullable=False, default=False)
    banner = Column(String(512), nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    # No CHECK >= 0: the paid transition decrements without a floor
    stock = Column(Integer, nullable=False)
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    num_reviews = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"eager_defaults": True}
