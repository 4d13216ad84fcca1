from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import WebhookSignatureError
from shared.schemas import ActionResult
from shared.security.dependencies import get_current_user

from services.order_service.repository import OrderRepository

from .schemas import PaypalApproval, WebhookResponse
from .service import PaymentService

router = APIRouter()
public_router = APIRouter()  # Health check and gateway callbacks

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "payment", "status": "running"}


@public_router.post("/webhooks/stripe", response_model=WebhookResponse)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    payload = await request.body()
    try:
        return await PaymentService.handle_stripe_webhook(
            db, payload, request.headers.get("stripe-signature")
        )
    except WebhookSignatureError as e:
        raise HTTPException(status_code=400, detail=e.message)


async def ensure_order_access(
    order_id: str, request: Request, user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> str:
    """Buyers may only pay for their own orders."""
    order = await OrderRepository.get_order(db, order_id)
    if order and order.user_id != user_id and request.state.role != "admin":
        raise HTTPException(status_code=403, detail="Not your order")
    return order_id


@router.post("/{order_id}/paypal", response_model=ActionResult)
async def create_paypal_order(order_id: str = Depends(ensure_order_access), db: AsyncSession = Depends(get_db)):
    return await PaymentService.create_paypal_order(db, order_id)


@router.post("/{order_id}/paypal/approve", response_model=ActionResult)
async def approve_paypal_order(
    payload: PaypalApproval,
    order_id: str = Depends(ensure_order_access),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentService.approve_paypal_order(db, order_id, payload.paypal_order_id)


@router.post("/{order_id}/stripe/intent", response_model=ActionResult)
async def create_stripe_intent(order_id: str = Depends(ensure_order_access), db: AsyncSession = Depends(get_db)):
    return await PaymentService.create_stripe_payment_intent(db, order_id)
