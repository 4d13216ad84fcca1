import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from shared.security.jwt_handler import verify_access_token

from services.cart_service.service import CartService
from services.user_service.models import User
from services.user_service.repository import UserRepository
from services.user_service.schemas import (
    PaymentMethodUpdate,
    ShippingAddress,
    SignInRequest,
    SignUpRequest,
    UserUpdate,
)
from services.user_service.service import UserService

from conftest import ADDRESS


def _sign_up(email="new@example.com"):
    return SignUpRequest(name="New User", email=email, password="secret123", confirm_password="secret123")


class TestSignUpSignIn:
    async def test_sign_up_issues_token(self, db):
        result = await UserService.sign_up(db, _sign_up())

        assert result.success
        payload = verify_access_token(result.data["access_token"])
        user = await UserService.get_user_by_id(db, payload["sub"])
        assert user.email == "new@example.com"
        assert payload["role"] == "user"
        assert user.hashed_password != "secret123"

    async def test_duplicate_email(self, db, make_user):
        await make_user(email="new@example.com")

        result = await UserService.sign_up(db, _sign_up())

        assert not result.success
        assert result.message == "Email already registered"

    async def test_concurrent_duplicate_email_is_a_failed_result(self, db, make_user, monkeypatch):
        await make_user(email="new@example.com")

        async def not_found_yet(db, email):
            return None

        # Both requests pass the lookup before either inserts
        monkeypatch.setattr(UserRepository, "get_by_email", staticmethod(not_found_yet))

        result = await UserService.sign_up(db, _sign_up())

        assert not result.success
        assert result.message == "Email already registered"
        count = await db.execute(select(func.count(User.id)).where(User.email == "new@example.com"))
        assert count.scalar_one() == 1

    def test_passwords_must_match(self):
        with pytest.raises(ValidationError, match="Passwords do not match"):
            SignUpRequest(name="New User", email="a@b.com", password="secret123", confirm_password="other123")

    async def test_sign_in(self, db, make_user):
        user = await make_user(role="admin")

        result = await UserService.sign_in(db, SignInRequest(email=user.email, password="secret123"))

        assert result.success
        assert verify_access_token(result.data["access_token"])["role"] == "admin"

    async def test_wrong_password(self, db, make_user):
        user = await make_user()

        result = await UserService.sign_in(db, SignInRequest(email=user.email, password="wrong-pass"))

        assert not result.success
        assert result.message == "Invalid email or password"

    async def test_sign_in_takes_over_guest_cart(self, db, make_user, make_product):
        user = await make_user()
        product = await make_product()
        await CartService.add_item_to_cart(db, "guest-7", None, product.id)

        await UserService.sign_in(db, SignInRequest(email=user.email, password="secret123"), "guest-7")

        cart = await CartService.get_my_cart(db, None, user.id)
        assert cart is not None
        assert cart.session_cart_id == "guest-7"


class TestProfile:
    async def test_update_address(self, db, make_user):
        user = await make_user(address=None)

        result = await UserService.update_user_address(db, user.id, ShippingAddress(**ADDRESS))

        assert result.success
        await db.refresh(user)
        assert user.address == ADDRESS

    async def test_update_payment_method(self, db, make_user):
        user = await make_user(payment_method=None)

        result = await UserService.update_user_payment_method(db, user.id, PaymentMethodUpdate(type="Stripe"))

        assert result.success
        await db.refresh(user)
        assert user.payment_method == "Stripe"

    async def test_payment_method_options_fall_back_to_store_default(self, db, make_user):
        user = await make_user(payment_method=None)

        options = await UserService.get_payment_method_options(db, user.id)

        assert options.type == "PayPal"
        assert options.methods == ["PayPal", "Stripe", "CashOnDelivery"]

    async def test_payment_method_options_keep_saved_choice(self, db, make_user):
        user = await make_user(payment_method="Stripe")

        options = await UserService.get_payment_method_options(db, user.id)

        assert options.type == "Stripe"

    def test_unknown_payment_method(self):
        with pytest.raises(ValidationError):
            PaymentMethodUpdate(type="Bitcoin")

    async def test_unknown_user(self, db):
        result = await UserService.update_user_payment_method(db, "missing", PaymentMethodUpdate(type="PayPal"))

        assert not result.success
        assert result.message == "User not found"


class TestAdminUsers:
    async def test_list_and_search(self, db, make_user):
        await make_user(email="alice@example.com", name="Alice")
        await make_user(email="bob@example.com", name="Bob")

        everyone = await UserService.get_all_users(db)
        alices = await UserService.get_all_users(db, query="ali")

        assert len(everyone.data) == 2
        assert [u.name for u in alices.data] == ["Alice"]
        assert alices.total_pages == 1

    async def test_update_role(self, db, make_user):
        user = await make_user()

        result = await UserService.update_user(db, user.id, UserUpdate(name="Jane Admin", role="admin"))

        assert result.success
        await db.refresh(user)
        assert user.role == "admin"

    async def test_delete(self, db, make_user):
        user = await make_user()
        user_id = user.id

        assert (await UserService.delete_user(db, user_id)).success
        assert not (await UserService.delete_user(db, user_id)).success
