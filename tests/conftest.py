"""Shared fixtures: in-memory SQLite database, fake gateways, HTTP client."""

import os

# Settings are read at import time, so the environment must be set first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["OTEL_TRACING_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["RESEND_API_KEY"] = ""

import hashlib
import hmac
import json
import time
from decimal import Decimal

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import SERVICE_APPS, app
from shared.config.database import Base, get_db
from shared.email import FakeEmailSender, reset_email_sender, set_email_sender
from shared.security.jwt_handler import create_access_token

from services.cart_service.models import Cart
from services.payment_service.paypal import reset_paypal_client, set_paypal_client
from services.product_service.models import Product
from services.user_service.models import User
from services.user_service.service import UserService

WEBHOOK_SECRET = "whsec_test_secret"

ADDRESS = {
    "full_name": "Jane Doe",
    "street_address": "1 Main St",
    "city": "Springfield",
    "postal_code": "12345",
    "country": "US",
}


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def email_sender():
    sender = FakeEmailSender()
    set_email_sender(sender)
    yield sender
    reset_email_sender()


class FakePaypalClient:
    """Stands in for PaypalClient; capture results are configured per test."""

    def __init__(self):
        self.order_id = "PAYPAL-ORDER-1"
        self.capture_result = None
        self.created_for = []

    async def create_order(self, price):
        self.created_for.append(Decimal(price))
        return {"id": self.order_id, "status": "CREATED"}

    async def capture_payment(self, paypal_order_id):
        if self.capture_result is not None:
            return self.capture_result
        return {
            "id": paypal_order_id,
            "status": "COMPLETED",
            "payer": {"email_address": "buyer@example.com"},
            "purchase_units": [
                {"payments": {"captures": [{"amount": {"value": "100.00"}}]}}
            ],
        }


@pytest.fixture
def paypal():
    client = FakePaypalClient()
    set_paypal_client(client)
    yield client
    reset_paypal_client()


@pytest.fixture
def make_user(db):
    async def _make(
        email="jane@example.com",
        name="Jane Doe",
        role="user",
        address=ADDRESS,
        payment_method="PayPal",
        password="secret123",
    ):
        user = User(
            name=name,
            email=email,
            hashed_password=UserService._hash_password(password),
            role=role,
            address=address,
            payment_method=payment_method,
        )
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_product(db):
    async def _make(name="Polo Shirt", slug="polo-shirt", price="40.00", stock=5, category="Shirts", **kwargs):
        product = Product(
            name=name,
            slug=slug,
            category=category,
            brand=kwargs.pop("brand", "Polo"),
            description=kwargs.pop("description", "A classic shirt"),
            images=kwargs.pop("images", [f"/images/{slug}.jpg"]),
            price=Decimal(price),
            stock=stock,
            **kwargs,
        )
        db.add(product)
        await db.commit()
        return product

    return _make


@pytest.fixture
def make_cart(db):
    """Cart with explicit totals, so tests can pin the figures copied into the order."""

    async def _make(user=None, lines=(), session_cart_id="session-1", totals=None):
        items = [
            {
                "product_id": product.id,
                "name": product.name,
                "slug": product.slug,
                "qty": qty,
                "image": product.images[0],
                "price": str(product.price),
            }
            for product, qty in lines
        ]
        items_price, shipping_price, tax_price, total_price = totals or ("0", "0", "0", "0")
        cart = Cart(
            session_cart_id=session_cart_id,
            user_id=user.id if user else None,
            items=items,
            items_price=Decimal(items_price),
            shipping_price=Decimal(shipping_price),
            tax_price=Decimal(tax_price),
            total_price=Decimal(total_price),
        )
        db.add(cart)
        await db.commit()
        return cart

    return _make


def auth_headers(user) -> dict:
    token = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


def stripe_signature(payload: str | bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Stripe-Signature header value: t=<ts>,v1=<hmac-sha256 of 'ts.payload'>."""
    timestamp = timestamp or int(time.time())
    body = payload if isinstance(payload, bytes) else payload.encode("utf-8")
    signed = f"{timestamp}.".encode("utf-8") + body
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def charge_succeeded_event(order_id: str, amount: int = 10000, charge_id: str = "ch_123") -> str:
    return json.dumps(
        {
            "id": "evt_1",
            "type": "charge.succeeded",
            "data": {
                "object": {
                    "id": charge_id,
                    "object": "charge",
                    "amount": amount,
                    "status": "succeeded",
                    "metadata": {"orderId": order_id},
                    "billing_details": {"email": "buyer@example.com"},
                }
            },
        }
    )


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    for service_app in SERVICE_APPS.values():
        service_app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    for service_app in SERVICE_APPS.values():
        service_app.dependency_overrides.clear()
