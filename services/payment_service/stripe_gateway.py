"""Stripe SDK calls: webhook verification and PaymentIntent creation."""
import asyncio
import json
from decimal import Decimal

import stripe

from shared.config.settings import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from shared.errors import WebhookSignatureError


def construct_event(payload: bytes | str, signature: str | None, secret: str = STRIPE_WEBHOOK_SECRET) -> dict:
    """Verify the Stripe-Signature header and return the event as a plain dict.

    Fails closed: a missing secret, missing header, bad signature, stale
    timestamp or unparsable body all raise WebhookSignatureError.
    """
    if not secret:
        raise WebhookSignatureError("Stripe webhook secret is not configured")
    if not signature:
        raise WebhookSignatureError("Missing Stripe-Signature header")
    try:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            payload, signature, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
        return json.loads(payload)
    except (stripe.SignatureVerificationError, ValueError) as e:
        raise WebhookSignatureError(f"Webhook signature verification failed: {e}") from e


def amount_to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).to_integral_value())


async def create_payment_intent(amount: Decimal, order_id: str) -> str:
    """Create a USD PaymentIntent tagged with the order id; returns its client secret."""
    # The SDK call is blocking
    intent = await asyncio.to_thread(
        stripe.PaymentIntent.create,
        amount=amount_to_cents(amount),
        currency="USD",
        metadata={"orderId": order_id},
        api_key=STRIPE_SECRET_KEY,
    )
    return intent.client_secret
