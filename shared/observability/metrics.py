from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total", 
    "Total order creation attempts", 
    ["status"] # Labels: 'success', 'failed'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds", 
    "Cart to order conversion duration in seconds"
)

ecomm_orders_paid_total = Counter(
    "ecomm_orders_paid_total",
    "Orders moved to paid",
    ["payment_method"] # Labels: 'PayPal', 'Stripe', 'CashOnDelivery'
)

ecomm_paypal_capture_total = Counter(
    "ecomm_paypal_capture_total",
    "PayPal capture verifications",
    ["status"] # Labels: 'accepted', 'rejected'
)

ecomm_stripe_webhook_events_total = Counter(
    "ecomm_stripe_webhook_events_total",
    "Verified Stripe webhook events received",
    ["event_type"]
)

ecomm_receipt_email_total = Counter(
    "ecomm_receipt_email_total",
    "Purchase receipt emails",
    ["status"] # Labels: 'sent', 'failed'
)

ecomm_carts_created_total = Counter(
    "ecomm_carts_created_total",
    "Carts created by a first add-to-cart"
)
