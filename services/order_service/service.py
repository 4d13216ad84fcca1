from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import transaction
from shared.config.settings import PAGE_SIZE
from shared.email import send_purchase_receipt
from shared.errors import (
    BusinessRuleError,
    EmailDeliveryError,
    NotFoundError,
    StorefrontError,
    format_error,
)
from shared.observability import (
    ecomm_checkout_duration_seconds,
    ecomm_checkout_total,
    ecomm_orders_paid_total,
    ecomm_receipt_email_total,
)
from shared.schemas import ActionResult, active_filter, page_offset, total_pages

from services.cart_service.service import CartService, cart_items
from services.product_service.repository import ProductRepository
from services.user_service.repository import UserRepository
from services.user_service.service import UserService

from .models import Order, OrderItem
from .repository import OrderRepository
from .schemas import (
    InsertOrder,
    MonthlySales,
    OrderListItem,
    OrderPage,
    PaymentResult,
    SalesSummary,
)

logger = structlog.get_logger(__name__)

LATEST_SALES_LIMIT = 6


class OrderService:

    @staticmethod
    async def create_order(
        db: AsyncSession, user_id: str, session_cart_id: Optional[str]
    ) -> ActionResult:
        """Turn the user's cart into an order.

        The order row, its item snapshots and the emptied cart are written in a
        single transaction. Missing prerequisites come back as a failed result
        with the page the user should be sent to.
        """
        with ecomm_checkout_duration_seconds.time():
            try:
                cart = await CartService.get_my_cart(db, session_cart_id, user_id)
                user = await UserService.get_user_by_id(db, user_id)

                if not cart or not cart.items:
                    result = ActionResult.fail("Cart is empty", redirect_to="/cart")
                elif not user.address:
                    result = ActionResult.fail("User address not found", redirect_to="/shipping-address")
                elif not user.payment_method:
                    result = ActionResult.fail(
                        "User payment method not found", redirect_to="/payment-method"
                    )
                else:
                    order_data = InsertOrder(
                        user_id=user.id,
                        shipping_address=user.address,
                        payment_method=user.payment_method,
                        items_price=cart.items_price,
                        shipping_price=cart.shipping_price,
                        tax_price=cart.tax_price,
                        total_price=cart.total_price,
                    )
                    items = cart_items(cart)

                    async with transaction(db):
                        order = Order(**order_data.model_dump())
                        order.items = [
                            OrderItem(
                                product_id=item.product_id,
                                qty=item.qty,
                                price=item.price,
                                name=item.name,
                                slug=item.slug,
                                image=item.image,
                            )
                            for item in items
                        ]
                        await OrderRepository.create_order(db, order)
                        CartService.reset_cart(cart)

                    logger.info(
                        "order_created",
                        order_id=order.id,
                        user_id=user.id,
                        items=len(items),
                        total_price=str(order.total_price),
                    )
                    result = ActionResult.ok(
                        "Order created successfully",
                        redirect_to=f"/order/{order.id}",
                        data={"id": order.id},
                    )
            except (StorefrontError, ValidationError) as e:
                result = ActionResult.fail(format_error(e))

        ecomm_checkout_total.labels(status="success" if result.success else "failed").inc()
        return result

    @staticmethod
    async def get_order_by_id(db: AsyncSession, order_id: str) -> Optional[Order]:
        return await OrderRepository.get_order(db, order_id)

    @staticmethod
    async def get_my_orders(
        db: AsyncSession, user_id: str, page: int = 1, limit: int = PAGE_SIZE
    ) -> OrderPage:
        orders = await OrderRepository.list_orders(db, page_offset(page, limit), limit, user_id=user_id)
        count = await OrderRepository.count(db, user_id=user_id)
        return OrderPage(
            data=[OrderListItem.model_validate(o) for o in orders],
            total_pages=total_pages(count, limit),
        )

    @staticmethod
    async def update_order_to_paid(
        db: AsyncSession, order_id: str, payment_result: Optional[PaymentResult] = None
    ) -> Order:
        """Mark an order paid and take its items out of stock.

        Every payment method converges here, so stock and the paid flag always
        change together. Raises NotFoundError / BusinessRuleError.
        """
        async with transaction(db):
            order = await OrderRepository.get_order(db, order_id, for_update=True)
            if not order:
                raise NotFoundError("Order not found")
            if order.is_paid:
                raise BusinessRuleError("Order is already paid")

            for item in order.items:
                # No floor: stock may go negative when oversold
                stock = await ProductRepository.decrement_stock(db, item.product_id, item.qty)
                if stock is None:
                    logger.warning("stock_product_missing", order_id=order.id, product_id=item.product_id)
                elif stock < 0:
                    logger.warning("stock_below_zero", product_id=item.product_id, stock=stock)

            order.is_paid = True
            order.paid_at = datetime.now(timezone.utc)
            if payment_result is not None:
                order.payment_result = payment_result.model_dump()

        ecomm_orders_paid_total.labels(payment_method=order.payment_method).inc()
        logger.info("order_paid", order_id=order.id, payment_method=order.payment_method)

        # The payment stands even if the receipt cannot be sent
        try:
            await send_purchase_receipt(order)
            ecomm_receipt_email_total.labels(status="sent").inc()
        except EmailDeliveryError as e:
            ecomm_receipt_email_total.labels(status="failed").inc()
            logger.error("receipt_email_failed", order_id=order.id, error=e.message)

        return order

    @staticmethod
    async def update_order_to_paid_cod(db: AsyncSession, order_id: str) -> ActionResult:
        try:
            await OrderService.update_order_to_paid(db, order_id)
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))
        return ActionResult.ok("Order updated to paid")

    @staticmethod
    async def deliver_order(db: AsyncSession, order_id: str) -> ActionResult:
        """One-way transition; only paid orders can be delivered."""
        try:
            async with transaction(db):
                order = await OrderRepository.get_order(db, order_id)
                if not order:
                    raise NotFoundError("Order not found")
                if not order.is_paid:
                    raise BusinessRuleError("Order is not paid")
                order.is_delivered = True
                order.delivered_at = datetime.now(timezone.utc)
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))

        logger.info("order_delivered", order_id=order_id)
        return ActionResult.ok("Order updated to delivered")

    # --- Admin console ---

    @staticmethod
    async def get_all_orders(
        db: AsyncSession, page: int = 1, limit: int = PAGE_SIZE, query: Optional[str] = None
    ) -> OrderPage:
        query = active_filter(query)
        orders = await OrderRepository.list_orders(db, page_offset(page, limit), limit, user_name=query)
        count = await OrderRepository.count(db, user_name=query)
        return OrderPage(
            data=[OrderListItem.model_validate(o) for o in orders],
            total_pages=total_pages(count, limit),
        )

    @staticmethod
    async def delete_order(db: AsyncSession, order_id: str) -> ActionResult:
        try:
            async with transaction(db):
                order = await OrderRepository.get_order(db, order_id)
                if not order:
                    raise NotFoundError("Order not found")
                await OrderRepository.delete_order(db, order)
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))
        logger.info("order_deleted", order_id=order_id)
        return ActionResult.ok("Order deleted successfully")

    @staticmethod
    async def get_sales_order_summary(db: AsyncSession) -> SalesSummary:
        monthly: dict[tuple[int, int], Decimal] = defaultdict(Decimal)
        for created_at, total_price in await OrderRepository.sales_rows(db):
            if created_at is not None:
                monthly[(created_at.year, created_at.month)] += total_price

        latest = await OrderRepository.list_orders(db, 0, LATEST_SALES_LIMIT)
        return SalesSummary(
            orders_count=await OrderRepository.count(db),
            products_count=await ProductRepository.count(db),
            users_count=await UserRepository.count(db),
            total_sales=await OrderRepository.total_sales(db),
            sales_data=[
                MonthlySales(month=f"{month:02d}/{year % 100:02d}", total_sales=total)
                for (year, month), total in sorted(monthly.items())
            ],
            latest_sales=[OrderListItem.model_validate(o) for o in latest],
        )
