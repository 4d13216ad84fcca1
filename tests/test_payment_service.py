import json
from decimal import Decimal

import httpx
import pytest

from shared.errors import PaymentGatewayError, WebhookSignatureError

from services.order_service.service import OrderService
from services.payment_service import stripe_gateway
from services.payment_service.paypal import PaypalClient
from services.payment_service.service import PaymentService

from conftest import WEBHOOK_SECRET, charge_succeeded_event, stripe_signature


@pytest.fixture
async def order(db, make_user, make_product, make_cart):
    user = await make_user()
    product = await make_product(price="80.00", stock=5)
    await make_cart(user=user, lines=[(product, 1)], totals=("80.00", "10.00", "10.00", "100.00"))
    result = await OrderService.create_order(db, user.id, None)
    return await OrderService.get_order_by_id(db, result.data["id"])


class TestPaypalFlow:
    async def test_create_stores_placeholder_result(self, db, order, paypal):
        result = await PaymentService.create_paypal_order(db, order.id)

        assert result.success
        assert result.data == "PAYPAL-ORDER-1"
        assert paypal.created_for == [Decimal("100.00")]
        assert order.payment_result == {
            "id": "PAYPAL-ORDER-1",
            "status": "",
            "price_paid": "0",
            "email_address": "",
        }
        assert not order.is_paid

    async def test_approve_marks_order_paid(self, db, order, paypal):
        await PaymentService.create_paypal_order(db, order.id)

        result = await PaymentService.approve_paypal_order(db, order.id, "PAYPAL-ORDER-1")

        assert result.success
        assert result.message == "Your order is now paid"
        await db.refresh(order)
        assert order.is_paid
        assert order.payment_result == {
            "id": "PAYPAL-ORDER-1",
            "status": "COMPLETED",
            "price_paid": "100.00",
            "email_address": "buyer@example.com",
        }

    async def test_capture_id_mismatch_is_rejected(self, db, order, paypal):
        await PaymentService.create_paypal_order(db, order.id)
        paypal.capture_result = {"id": "SOMEONE-ELSE", "status": "COMPLETED"}

        result = await PaymentService.approve_paypal_order(db, order.id, "SOMEONE-ELSE")

        assert not result.success
        assert result.message == "Error in PayPal payment"
        await db.refresh(order)
        assert not order.is_paid
        assert order.payment_result["status"] == ""

    async def test_incomplete_capture_is_rejected(self, db, order, paypal):
        await PaymentService.create_paypal_order(db, order.id)
        paypal.capture_result = {"id": "PAYPAL-ORDER-1", "status": "PENDING"}

        result = await PaymentService.approve_paypal_order(db, order.id, "PAYPAL-ORDER-1")

        assert result.message == "Error in PayPal payment"
        await db.refresh(order)
        assert not order.is_paid

    async def test_approve_without_opened_order_is_rejected(self, db, order, paypal):
        result = await PaymentService.approve_paypal_order(db, order.id, "PAYPAL-ORDER-1")

        assert not result.success

    async def test_paid_order_cannot_open_paypal_order(self, db, order, paypal):
        await OrderService.update_order_to_paid(db, order.id)

        result = await PaymentService.create_paypal_order(db, order.id)

        assert result.message == "Order is already paid"
        assert paypal.created_for == []


class TestPaypalClient:
    @staticmethod
    def _client(handler):
        return PaypalClient(
            base_url="https://paypal.test",
            client_id="client",
            app_secret="secret",
            transport=httpx.MockTransport(handler),
        )

    async def test_create_order_sends_bearer_token_and_amount(self):
        seen = []

        def handler(request: httpx.Request):
            seen.append(request)
            if request.url.path == "/v1/oauth2/token":
                return httpx.Response(200, json={"access_token": "token-1"})
            return httpx.Response(201, json={"id": "PP-1", "status": "CREATED"})

        result = await self._client(handler).create_order(Decimal("100"))

        assert result["id"] == "PP-1"
        order_request = seen[-1]
        assert order_request.url.path == "/v2/checkout/orders"
        assert order_request.headers["Authorization"] == "Bearer token-1"
        body = json.loads(order_request.content)
        assert body["intent"] == "CAPTURE"
        assert body["purchase_units"][0]["amount"] == {"currency_code": "USD", "value": "100.00"}

    async def test_error_response_raises(self):
        def handler(request: httpx.Request):
            if request.url.path == "/v1/oauth2/token":
                return httpx.Response(200, json={"access_token": "token-1"})
            return httpx.Response(422, json={"name": "UNPROCESSABLE_ENTITY"})

        with pytest.raises(PaymentGatewayError, match="422"):
            await self._client(handler).capture_payment("PP-1")

    async def test_network_error_raises(self):
        def handler(request: httpx.Request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(PaymentGatewayError, match="unreachable"):
            await self._client(handler).generate_access_token()


class TestStripeGateway:
    def test_valid_signature_returns_event(self):
        payload = json.dumps({"id": "evt_1", "type": "payment_intent.created"})

        event = stripe_gateway.construct_event(payload, stripe_signature(payload), WEBHOOK_SECRET)

        assert event["type"] == "payment_intent.created"

    def test_tampered_payload_is_rejected(self):
        payload = json.dumps({"id": "evt_1", "type": "charge.succeeded"})
        signature = stripe_signature(payload)

        with pytest.raises(WebhookSignatureError):
            stripe_gateway.construct_event(payload.replace("evt_1", "evt_2"), signature, WEBHOOK_SECRET)

    def test_missing_header_is_rejected(self):
        with pytest.raises(WebhookSignatureError):
            stripe_gateway.construct_event("{}", None, WEBHOOK_SECRET)

    def test_missing_secret_fails_closed(self):
        payload = "{}"
        with pytest.raises(WebhookSignatureError):
            stripe_gateway.construct_event(payload, stripe_signature(payload), "")

    def test_undecodable_body_is_rejected(self):
        payload = b'{"id": "evt_1", "type": "\xff\xfe"}'

        with pytest.raises(WebhookSignatureError):
            stripe_gateway.construct_event(payload, stripe_signature(payload), WEBHOOK_SECRET)

    def test_amount_to_cents(self):
        assert stripe_gateway.amount_to_cents(Decimal("100.00")) == 10000
        assert stripe_gateway.amount_to_cents(Decimal("19.99")) == 1999


class TestStripeWebhook:
    async def test_charge_succeeded_marks_order_paid(self, db, order, email_sender):
        payload = charge_succeeded_event(order.id, amount=10000)

        response = await PaymentService.handle_stripe_webhook(db, payload.encode(), stripe_signature(payload))

        assert response == {"message": "Order updated to paid"}
        await db.refresh(order)
        assert order.is_paid
        assert order.payment_result == {
            "id": "ch_123",
            "status": "succeeded",
            "price_paid": "100.00",
            "email_address": "buyer@example.com",
        }
        assert len(email_sender.sent_emails) == 1

    async def test_other_events_are_acknowledged_without_change(self, db, order):
        payload = json.dumps({"id": "evt_2", "type": "payment_intent.created", "data": {"object": {}}})

        response = await PaymentService.handle_stripe_webhook(db, payload.encode(), stripe_signature(payload))

        assert response == {"message": "Event is not charge.succeeded"}
        await db.refresh(order)
        assert not order.is_paid

    async def test_redelivery_does_not_pay_twice(self, db, order):
        payload = charge_succeeded_event(order.id)
        await PaymentService.handle_stripe_webhook(db, payload.encode(), stripe_signature(payload))

        response = await PaymentService.handle_stripe_webhook(db, payload.encode(), stripe_signature(payload))

        assert response == {"message": "Order is already paid"}

    async def test_unknown_order_is_acknowledged(self, db):
        payload = charge_succeeded_event("missing")

        response = await PaymentService.handle_stripe_webhook(db, payload.encode(), stripe_signature(payload))

        assert response == {"message": "Order not found"}

    async def test_bad_signature_raises_before_any_change(self, db, order):
        payload = charge_succeeded_event(order.id)

        with pytest.raises(WebhookSignatureError):
            await PaymentService.handle_stripe_webhook(
                db, payload.encode(), stripe_signature(payload, secret="whsec_wrong")
            )

        await db.refresh(order)
        assert not order.is_paid
