from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Review


class ReviewRepository:
    @staticmethod
    async def create(db: AsyncSession, review: Review):
        db.add(review)
        await db.flush()
        return review

    @staticmethod
    async def get_by_product_and_user(db: AsyncSession, product_id: str, user_id: str) -> Optional[Review]:
        result = await db.execute(
            select(Review).where(Review.product_id == product_id, Review.user_id == user_id)
        )
        return result.scalars().first()

    @staticmethod
    async def list_for_product(db: AsyncSession, product_id: str) -> Sequence[Review]:
        result = await db.execute(
            select(Review).where(Review.product_id == product_id).order_by(Review.created_at.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def aggregate(db: AsyncSession, product_id: str) -> tuple[Optional[float], int]:
        """(average rating, review count) over every review of the product."""
        result = await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.product_id == product_id)
        )
        average, count = result.one()
        return average, count
