"""Email sender factory and the purchase receipt entry point.

get_email_sender() / set_email_sender() swap implementations:
- ResendEmailSender in production
- FakeEmailSender in tests
"""

import asyncio

from .fake_adapter import FakeEmailSender
from .port import EmailSender
from .purchase_receipt import PurchaseReceipt
from .resend_adapter import ResendEmailSender

_current_sender: EmailSender | None = None


def get_email_sender() -> EmailSender:
    global _current_sender
    if _current_sender is None:
        _current_sender = ResendEmailSender()
    return _current_sender


def set_email_sender(sender: EmailSender) -> None:
    global _current_sender
    _current_sender = sender


def reset_email_sender() -> None:
    global _current_sender
    _current_sender = None


async def send_purchase_receipt(order) -> str:
    """Send the receipt to the order owner. Raises EmailDeliveryError on failure."""
    content = PurchaseReceipt.render(order)
    sender = get_email_sender()
    # Provider SDKs are blocking
    return await asyncio.to_thread(sender.send, order.user.email, content["subject"], content["html"])


__all__ = [
    "EmailSender",
    "FakeEmailSender",
    "ResendEmailSender",
    "PurchaseReceipt",
    "get_email_sender",
    "set_email_sender",
    "reset_email_sender",
    "send_purchase_receipt",
]
