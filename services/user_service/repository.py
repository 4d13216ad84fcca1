from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User


class UserRepository:

    @staticmethod
    async def create(db: AsyncSession, user: User) -> User:
        db.add(user)
        await db.flush()
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    @staticmethod
    async def list_users(
        db: AsyncSession, query: Optional[str], offset: int, limit: int
    ) -> Sequence[User]:
        stmt = select(User).order_by(User.created_at.desc())
        if query:
            stmt = stmt.where(User.name.ilike(f"%{query}%"))
        result = await db.execute(stmt.offset(offset).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def count(db: AsyncSession, query: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(User)
        if query:
            stmt = stmt.where(User.name.ilike(f"%{query}%"))
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def delete(db: AsyncSession, user_id: str) -> int:
        result = await db.execute(delete(User).where(User.id == user_id))
        return result.rowcount
