from .setup import setup_observability, configure_logging
from .metrics import (
    ecomm_checkout_total,
    ecomm_checkout_duration_seconds,
    ecomm_orders_paid_total,
    ecomm_paypal_capture_total,
    ecomm_stripe_webhook_events_total,
    ecomm_receipt_email_total,
    ecomm_carts_created_total
)
