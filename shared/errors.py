from pydantic import ValidationError


class StorefrontError(Exception):
    """Base class for business failures that are reported back to the caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StorefrontError):
    pass


class BusinessRuleError(StorefrontError):
    """A precondition of the operation does not hold (empty cart, already paid, ...)."""


class PaymentGatewayError(StorefrontError):
    pass


class WebhookSignatureError(StorefrontError):
    pass


class EmailDeliveryError(StorefrontError):
    pass


def format_error(error: Exception) -> str:
    """Human readable message for a caught exception."""
    if isinstance(error, ValidationError):
        messages = []
        for err in error.errors():
            field = ".".join(str(part) for part in err.get("loc", ()))
            messages.append(f"{field}: {err['msg']}" if field else err["msg"])
        return "; ".join(messages)
    if isinstance(error, StorefrontError):
        return error.message
    return str(error)
