from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import transaction
from shared.errors import BusinessRuleError, NotFoundError, PaymentGatewayError, StorefrontError, format_error
from shared.observability import ecomm_paypal_capture_total, ecomm_stripe_webhook_events_total
from shared.schemas import ActionResult

from services.order_service.models import Order
from services.order_service.repository import OrderRepository
from services.order_service.schemas import PaymentResult
from services.order_service.service import OrderService

from . import stripe_gateway
from .paypal import get_paypal_client

logger = structlog.get_logger(__name__)

CHARGE_SUCCEEDED = "charge.succeeded"


def _captured_amount(capture: dict) -> str:
    try:
        return str(capture["purchase_units"][0]["payments"]["captures"][0]["amount"]["value"])
    except (KeyError, IndexError, TypeError):
        return "0"


class PaymentService:

    @staticmethod
    async def _get_unpaid_order(db: AsyncSession, order_id: str) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.is_paid:
            raise BusinessRuleError("Order is already paid")
        return order

    # --- PayPal: created -> paypal_order_opened -> captured_and_paid ---

    @staticmethod
    async def create_paypal_order(db: AsyncSession, order_id: str) -> ActionResult:
        """Open a PayPal order and remember its id as a placeholder receipt."""
        try:
            order = await PaymentService._get_unpaid_order(db, order_id)
            paypal_order = await get_paypal_client().create_order(order.total_price)
            async with transaction(db):
                order.payment_result = PaymentResult(
                    id=paypal_order["id"], status="", price_paid="0", email_address=""
                ).model_dump()
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))

        logger.info("paypal_order_opened", order_id=order_id, paypal_order_id=paypal_order["id"])
        return ActionResult.ok("PayPal order created successfully", data=paypal_order["id"])

    @staticmethod
    async def approve_paypal_order(db: AsyncSession, order_id: str, paypal_order_id: str) -> ActionResult:
        """Capture the approved PayPal order and, if it checks out, mark the order paid.

        The capture must carry the id stored by create_paypal_order and the
        status COMPLETED; anything else leaves the order untouched.
        """
        try:
            order = await OrderRepository.get_order(db, order_id)
            if not order:
                raise NotFoundError("Order not found")

            capture = await get_paypal_client().capture_payment(paypal_order_id)
            placeholder_id = (order.payment_result or {}).get("id")
            if (
                not capture
                or not placeholder_id
                or capture.get("id") != placeholder_id
                or capture.get("status") != "COMPLETED"
            ):
                ecomm_paypal_capture_total.labels(status="rejected").inc()
                logger.warning(
                    "paypal_capture_rejected",
                    order_id=order_id,
                    capture_id=(capture or {}).get("id"),
                    capture_status=(capture or {}).get("status"),
                )
                raise PaymentGatewayError("Error in PayPal payment")

            ecomm_paypal_capture_total.labels(status="accepted").inc()
            await OrderService.update_order_to_paid(
                db,
                order_id,
                PaymentResult(
                    id=capture["id"],
                    status=capture["status"],
                    price_paid=_captured_amount(capture),
                    email_address=(capture.get("payer") or {}).get("email_address", ""),
                ),
            )
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))

        return ActionResult.ok("Your order is now paid")

    # --- Stripe ---

    @staticmethod
    async def create_stripe_payment_intent(db: AsyncSession, order_id: str) -> ActionResult:
        try:
            order = await PaymentService._get_unpaid_order(db, order_id)
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))
        client_secret = await stripe_gateway.create_payment_intent(order.total_price, order.id)
        return ActionResult.ok("Payment intent created", data={"client_secret": client_secret})

    @staticmethod
    async def handle_stripe_webhook(db: AsyncSession, payload: bytes, signature: Optional[str]) -> dict:
        """Verify a Stripe event and apply 'charge.succeeded' to its order.

        Raises WebhookSignatureError before touching anything when the payload
        cannot be verified. Every verified event is acknowledged so Stripe does
        not keep redelivering it.
        """
        event = stripe_gateway.construct_event(payload, signature)
        event_type = event.get("type", "unknown")
        ecomm_stripe_webhook_events_total.labels(event_type=event_type).inc()

        if event_type != CHARGE_SUCCEEDED:
            logger.info("stripe_webhook_ignored", event_type=event_type, event_id=event.get("id"))
            return {"message": "Event is not charge.succeeded"}

        charge = event["data"]["object"]
        order_id = (charge.get("metadata") or {}).get("orderId")
        if not order_id:
            logger.warning("stripe_charge_without_order", charge_id=charge.get("id"))
            return {"message": "Charge has no orderId metadata"}

        payment_result = PaymentResult(
            id=charge["id"],
            status=str(charge.get("status", "")),
            price_paid=f"{Decimal(charge.get('amount', 0)) / 100:.2f}",
            email_address=(charge.get("billing_details") or {}).get("email") or "",
        )
        try:
            await OrderService.update_order_to_paid(db, order_id, payment_result)
        except StorefrontError as e:
            logger.warning("stripe_charge_not_applied", order_id=order_id, error=e.message)
            return {"message": e.message}

        return {"message": "Order updated to paid"}
