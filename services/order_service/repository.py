from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.models import User

from .models import Order


class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: Order):
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str, for_update: bool = False) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        if for_update:
            # Serialises concurrent paid transitions on the order row
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        offset: int,
        limit: int,
        user_id: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> Sequence[Order]:
        stmt = OrderRepository._filtered(select(Order), user_id, user_name)
        result = await db.execute(stmt.order_by(Order.created_at.desc()).offset(offset).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def count(db: AsyncSession, user_id: Optional[str] = None, user_name: Optional[str] = None) -> int:
        stmt = OrderRepository._filtered(select(func.count(Order.id)), user_id, user_name)
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    def _filtered(stmt, user_id, user_name):
        if user_id:
            stmt = stmt.where(Order.user_id == user_id)
        if user_name:
            stmt = stmt.join(User, Order.user_id == User.id).where(User.name.ilike(f"%{user_name}%"))
        return stmt

    @staticmethod
    async def total_sales(db: AsyncSession):
        result = await db.execute(select(func.coalesce(func.sum(Order.total_price), 0)))
        return result.scalar_one()

    @staticmethod
    async def sales_rows(db: AsyncSession):
        result = await db.execute(select(Order.created_at, Order.total_price))
        return result.all()

    @staticmethod
    async def delete_order(db: AsyncSession, order: Order):
        await db.delete(order)
