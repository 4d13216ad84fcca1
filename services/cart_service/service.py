from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import transaction
from shared.errors import BusinessRuleError, StorefrontError, format_error
from shared.observability import ecomm_carts_created_total
from shared.schemas import ActionResult

from services.product_service.models import Product
from services.product_service.repository import ProductRepository

from .models import Cart
from .repository import CartRepository
from .schemas import CartItem, CartPrices

logger = structlog.get_logger(__name__)

FREE_SHIPPING_THRESHOLD = Decimal("100")
FLAT_SHIPPING_PRICE = Decimal("10")
TAX_RATE = Decimal("0.15")
CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calc_price(items: Iterable[CartItem]) -> CartPrices:
    items_price = round2(sum((item.price * item.qty for item in items), Decimal("0")))
    shipping_price = round2(Decimal("0") if items_price > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_PRICE)
    tax_price = round2(TAX_RATE * items_price)
    return CartPrices(
        items_price=items_price,
        shipping_price=shipping_price,
        tax_price=tax_price,
        total_price=round2(items_price + shipping_price + tax_price),
    )


def cart_items(cart: Cart) -> list[CartItem]:
    return [CartItem.model_validate(item) for item in cart.items or []]


def _snapshot(product: Product) -> CartItem:
    return CartItem(
        product_id=product.id,
        name=product.name,
        slug=product.slug,
        qty=1,
        image=product.images[0],
        price=product.price,
    )


def _write_items(cart: Cart, items: list[CartItem]):
    # JSON columns only persist on reassignment
    cart.items = [item.model_dump(mode="json") for item in items]
    for field, value in calc_price(items).model_dump().items():
        setattr(cart, field, value)


class CartService:

    @staticmethod
    async def get_my_cart(
        db: AsyncSession, session_cart_id: Optional[str], user_id: Optional[str] = None
    ) -> Optional[Cart]:
        if user_id:
            return await CartRepository.get_by_user(db, user_id)
        if session_cart_id:
            return await CartRepository.get_by_session(db, session_cart_id)
        return None

    @staticmethod
    async def add_item_to_cart(
        db: AsyncSession, session_cart_id: str, user_id: Optional[str], product_id: str
    ) -> ActionResult:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            return ActionResult.fail("Product not found")

        cart = await CartService.get_my_cart(db, session_cart_id, user_id)
        updated = created = False
        try:
            async with transaction(db):
                if not cart:
                    if product.stock < 1:
                        raise BusinessRuleError("Not enough stock")
                    cart = Cart(session_cart_id=session_cart_id, user_id=user_id)
                    _write_items(cart, [_snapshot(product)])
                    await CartRepository.create_cart(db, cart)
                    created = True
                else:
                    items = cart_items(cart)
                    existing = next((i for i in items if i.product_id == product.id), None)
                    if existing:
                        if product.stock < existing.qty + 1:
                            raise BusinessRuleError("Not enough stock")
                        existing.qty += 1
                        updated = True
                    else:
                        if product.stock < 1:
                            raise BusinessRuleError("Not enough stock")
                        items.append(_snapshot(product))
                    _write_items(cart, items)
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))

        if created:
            ecomm_carts_created_total.inc()
        logger.info("cart_item_added", cart_id=cart.id, product_id=product.id)
        return ActionResult.ok(f"{product.name} {'updated in' if updated else 'added to'} cart")

    @staticmethod
    async def remove_item_from_cart(
        db: AsyncSession, session_cart_id: str, user_id: Optional[str], product_id: str
    ) -> ActionResult:
        cart = await CartService.get_my_cart(db, session_cart_id, user_id)
        if not cart:
            return ActionResult.fail("Cart not found")

        items = cart_items(cart)
        existing = next((i for i in items if i.product_id == product_id), None)
        if not existing:
            return ActionResult.fail("Item not found")

        async with transaction(db):
            if existing.qty == 1:
                items.remove(existing)
            else:
                existing.qty -= 1
            _write_items(cart, items)

        logger.info("cart_item_removed", cart_id=cart.id, product_id=product_id)
        return ActionResult.ok(f"{existing.name} was removed from cart")

    @staticmethod
    def reset_cart(cart: Cart):
        """Empty the cart and zero its totals. Caller owns the transaction."""
        cart.items = []
        cart.items_price = cart.shipping_price = cart.tax_price = cart.total_price = Decimal("0")

    @staticmethod
    async def assign_session_cart(db: AsyncSession, session_cart_id: str, user_id: str):
        """On sign-in the guest cart becomes the user's cart, replacing any older one."""
        cart = await CartRepository.get_by_session(db, session_cart_id)
        if not cart:
            return None
        async with transaction(db):
            await CartRepository.delete_user_carts(db, user_id, keep_cart_id=cart.id)
            cart.user_id = user_id
        logger.info("session_cart_assigned", cart_id=cart.id, user_id=user_id)
        return cart
