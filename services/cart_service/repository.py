from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Cart


class CartRepository:
    @staticmethod
    async def create_cart(db: AsyncSession, cart: Cart):
        db.add(cart)
        await db.flush()
        return cart

    @staticmethod
    async def get_by_user(db: AsyncSession, user_id: str) -> Optional[Cart]:
        result = await db.execute(select(Cart).where(Cart.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_session(db: AsyncSession, session_cart_id: str) -> Optional[Cart]:
        result = await db.execute(select(Cart).where(Cart.session_cart_id == session_cart_id))
        return result.scalars().first()

    @staticmethod
    async def delete_user_carts(db: AsyncSession, user_id: str, keep_cart_id: str):
        await db.execute(
            delete(Cart).where(Cart.user_id == user_id, Cart.id != keep_cart_id)
        )
