from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.schemas import ActionResult
from shared.security.dependencies import get_optional_user, get_session_cart_id

from .schemas import CartItemCreate, CartResponse
from .service import CartService

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "cart", "status": "running"}


@router.get("/", response_model=Optional[CartResponse])
async def get_my_cart(
    session_cart_id: str = Depends(get_session_cart_id),
    user_id: Optional[str] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.get_my_cart(db, session_cart_id, user_id)


@router.post("/items", response_model=ActionResult)
async def add_item(
    item: CartItemCreate,
    session_cart_id: str = Depends(get_session_cart_id),
    user_id: Optional[str] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.add_item_to_cart(db, session_cart_id, user_id, item.product_id)


@router.delete("/items/{product_id}", response_model=ActionResult)
async def remove_item(
    product_id: str,
    session_cart_id: str = Depends(get_session_cart_id),
    user_id: Optional[str] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.remove_item_from_cart(db, session_cart_id, user_id, product_id)
