from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product

SORT_ORDERS = {
    "lowest": Product.price.asc(),
    "highest": Product.price.desc(),
    "rating": Product.rating.desc(),
    "newest": Product.created_at.desc(),
}


class ProductRepository:

    @staticmethod
    async def create_product(db: AsyncSession, product: Product):
        db.add(product)
        await db.flush()
        return product

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: str) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.id == product_id))
        return result.scalars().first()

    @staticmethod
    async def get_product_by_slug(db: AsyncSession, slug: str) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.slug == slug))
        return result.scalars().first()

    @staticmethod
    async def get_latest(db: AsyncSession, limit: int) -> Sequence[Product]:
        result = await db.execute(select(Product).order_by(Product.created_at.desc()).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def get_featured(db: AsyncSession, limit: int) -> Sequence[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.is_featured.is_(True))
            .order_by(Product.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    def _filtered(stmt, query, category, price_range, min_rating):
        if query:
            stmt = stmt.where(Product.name.ilike(f"%{query}%"))
        if category:
            stmt = stmt.where(Product.category == category)
        if price_range:
            low, high = price_range
            stmt = stmt.where(Product.price >= low, Product.price <= high)
        if min_rating is not None:
            stmt = stmt.where(Product.rating >= min_rating)
        return stmt

    @staticmethod
    async def search(
        db: AsyncSession,
        query: Optional[str],
        category: Optional[str],
        price_range: Optional[tuple[Decimal, Decimal]],
        min_rating: Optional[Decimal],
        sort: str,
        offset: int,
        limit: int,
    ) -> Sequence[Product]:
        stmt = ProductRepository._filtered(select(Product), query, category, price_range, min_rating)
        stmt = stmt.order_by(SORT_ORDERS.get(sort, SORT_ORDERS["newest"]))
        result = await db.execute(stmt.offset(offset).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def count(
        db: AsyncSession,
        query: Optional[str] = None,
        category: Optional[str] = None,
        price_range: Optional[tuple[Decimal, Decimal]] = None,
        min_rating: Optional[Decimal] = None,
    ) -> int:
        stmt = ProductRepository._filtered(
            select(func.count()).select_from(Product), query, category, price_range, min_rating
        )
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def categories(db: AsyncSession):
        result = await db.execute(
            select(Product.category, func.count(Product.id).label("count"))
            .group_by(Product.category)
            .order_by(desc("count"), Product.category)
        )
        return result.all()

    @staticmethod
    async def decrement_stock(db: AsyncSession, product_id: str, quantity: int) -> Optional[int]:
        """Atomic in-database decrement. Returns the new stock, or None if the product is gone."""
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock - quantity)
            .returning(Product.stock)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def update_rating(db: AsyncSession, product_id: str, rating: Decimal, num_reviews: int):
        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(rating=rating, num_reviews=num_reviews)
        )

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: str) -> int:
        result = await db.execute(delete(Product).where(Product.id == product_id))
        return result.rowcount
