from decimal import Decimal

from prometheus_client import REGISTRY

from services.cart_service.schemas import CartItem
from services.cart_service.service import CartService, calc_price, cart_items


def _item(price, qty=1):
    return CartItem(product_id="p1", name="Shirt", slug="shirt", qty=qty, image="/a.jpg", price=Decimal(price))


class TestCalcPrice:
    def test_flat_shipping_at_or_below_threshold(self):
        prices = calc_price([_item("50.00", qty=2)])

        assert prices.items_price == Decimal("100.00")
        assert prices.shipping_price == Decimal("10.00")
        assert prices.tax_price == Decimal("15.00")
        assert prices.total_price == Decimal("125.00")

    def test_free_shipping_above_threshold(self):
        prices = calc_price([_item("100.01")])

        assert prices.shipping_price == Decimal("0.00")
        assert prices.total_price == prices.items_price + prices.tax_price

    def test_tax_rounds_half_up(self):
        # 15% of 0.10 is 0.015
        prices = calc_price([_item("0.10")])

        assert prices.tax_price == Decimal("0.02")

    def test_totals_always_add_up(self):
        prices = calc_price([_item("19.99", qty=3), _item("4.35")])

        assert prices.total_price == prices.items_price + prices.shipping_price + prices.tax_price


class TestAddItem:
    async def test_first_item_creates_cart(self, db, make_product):
        product = await make_product(price="40.00")

        result = await CartService.add_item_to_cart(db, "guest-1", None, product.id)

        assert result.success
        assert result.message == "Polo Shirt added to cart"
        cart = await CartService.get_my_cart(db, "guest-1")
        assert [item.qty for item in cart_items(cart)] == [1]
        assert cart.items_price == Decimal("40.00")
        assert cart.total_price == Decimal("56.00")

    async def test_same_product_increments_quantity(self, db, make_product):
        product = await make_product(price="40.00")
        await CartService.add_item_to_cart(db, "guest-1", None, product.id)

        result = await CartService.add_item_to_cart(db, "guest-1", None, product.id)

        assert result.message == "Polo Shirt updated in cart"
        cart = await CartService.get_my_cart(db, "guest-1")
        assert cart_items(cart)[0].qty == 2
        assert cart.items_price == Decimal("80.00")

    async def test_cannot_exceed_stock(self, db, make_product):
        product = await make_product(stock=1)
        await CartService.add_item_to_cart(db, "guest-1", None, product.id)

        result = await CartService.add_item_to_cart(db, "guest-1", None, product.id)

        assert not result.success
        assert result.message == "Not enough stock"

    async def test_out_of_stock_product_creates_no_cart(self, db, make_product):
        product = await make_product(stock=0)

        result = await CartService.add_item_to_cart(db, "guest-1", None, product.id)

        assert not result.success
        assert await CartService.get_my_cart(db, "guest-1") is None

    async def test_counts_only_new_carts(self, db, make_product):
        product = await make_product(stock=0)
        in_stock = await make_product(name="Jeans", slug="jeans", stock=5)
        before = REGISTRY.get_sample_value("ecomm_carts_created_total")

        await CartService.add_item_to_cart(db, "guest-1", None, product.id)
        await CartService.add_item_to_cart(db, "guest-1", None, in_stock.id)
        await CartService.add_item_to_cart(db, "guest-1", None, in_stock.id)

        assert REGISTRY.get_sample_value("ecomm_carts_created_total") == before + 1

    async def test_unknown_product(self, db):
        result = await CartService.add_item_to_cart(db, "guest-1", None, "missing")

        assert not result.success
        assert result.message == "Product not found"


class TestRemoveItem:
    async def test_decrements_then_removes(self, db, make_product):
        product = await make_product(price="40.00")
        await CartService.add_item_to_cart(db, "guest-1", None, product.id)
        await CartService.add_item_to_cart(db, "guest-1", None, product.id)

        await CartService.remove_item_from_cart(db, "guest-1", None, product.id)
        cart = await CartService.get_my_cart(db, "guest-1")
        assert cart_items(cart)[0].qty == 1

        result = await CartService.remove_item_from_cart(db, "guest-1", None, product.id)
        assert result.success
        assert cart_items(cart) == []

    async def test_missing_item(self, db, make_product):
        product = await make_product()
        await CartService.add_item_to_cart(db, "guest-1", None, product.id)

        result = await CartService.remove_item_from_cart(db, "guest-1", None, "other")

        assert not result.success
        assert result.message == "Item not found"


class TestAssignSessionCart:
    async def test_guest_cart_replaces_older_user_cart(self, db, make_user, make_product, make_cart):
        user = await make_user()
        product = await make_product()
        await make_cart(user=user, lines=[(product, 1)], session_cart_id="old-session")
        guest_cart = await make_cart(lines=[(product, 2)], session_cart_id="new-session")

        await CartService.assign_session_cart(db, "new-session", user.id)

        cart = await CartService.get_my_cart(db, None, user.id)
        assert cart.id == guest_cart.id
        assert await CartService.get_my_cart(db, "old-session") is None

    async def test_reset_cart_zeroes_totals(self, db, make_product, make_cart):
        product = await make_product()
        cart = await make_cart(lines=[(product, 1)], totals=("40", "10", "6", "56"))

        CartService.reset_cart(cart)

        assert cart.items == []
        assert cart.shipping_price == Decimal("0")
        assert cart.total_price == Decimal("0")
