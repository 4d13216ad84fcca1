from pydantic import BaseModel, ConfigDict, Field


class PaypalApproval(BaseModel):
    """Body posted by the PayPal buttons' onApprove callback."""
    model_config = ConfigDict(populate_by_name=True)

    paypal_order_id: str = Field(alias="orderID", min_length=1)


class WebhookResponse(BaseModel):
    message: str
