from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import PAGE_SIZE
from shared.schemas import ActionResult
from shared.security.dependencies import get_current_user, get_session_cart_id, require_admin

from .schemas import OrderPage, OrderResponse, SalesSummary
from .service import OrderService

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}


@router.post("/", response_model=ActionResult)
async def create_order(
    user_id: str = Depends(get_current_user),
    session_cart_id: str = Depends(get_session_cart_id),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.create_order(db, user_id, session_cart_id)


@router.get("/mine", response_model=OrderPage)
async def my_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=PAGE_SIZE, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_my_orders(db, user_id, page=page, limit=limit)


# --- Admin console ---

@admin_router.get("/", response_model=OrderPage)
async def list_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=PAGE_SIZE, ge=1, le=100),
    query: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_all_orders(db, page=page, limit=limit, query=query)


@admin_router.get("/summary", response_model=SalesSummary)
async def sales_summary(db: AsyncSession = Depends(get_db)):
    return await OrderService.get_sales_order_summary(db)


@admin_router.put("/{order_id}/pay", response_model=ActionResult)
async def mark_paid_cash_on_delivery(order_id: str, db: AsyncSession = Depends(get_db)):
    return await OrderService.update_order_to_paid_cod(db, order_id)


@admin_router.put("/{order_id}/deliver", response_model=ActionResult)
async def deliver_order(order_id: str, db: AsyncSession = Depends(get_db)):
    return await OrderService.deliver_order(db, order_id)


@admin_router.delete("/{order_id}", response_model=ActionResult)
async def delete_order(order_id: str, db: AsyncSession = Depends(get_db)):
    return await OrderService.delete_order(db, order_id)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    request: Request,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.get_order_by_id(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.user_id != user_id and request.state.role != "admin":
        raise HTTPException(status_code=403, detail="Not your order")
    return order
