"""PayPal REST client (Orders v2).

get_paypal_client() / set_paypal_client() let tests swap in a client built on
an httpx.MockTransport or a plain fake object.
"""
from decimal import Decimal

import httpx

from shared.config.settings import PAYPAL_API_URL, PAYPAL_APP_SECRET, PAYPAL_CLIENT_ID
from shared.errors import PaymentGatewayError


class PaypalClient:
    def __init__(
        self,
        base_url: str = PAYPAL_API_URL,
        client_id: str = PAYPAL_CLIENT_ID,
        app_secret: str = PAYPAL_APP_SECRET,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url
        self.client_id = client_id
        self.app_secret = app_secret
        self.transport = transport
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _handle_response(response: httpx.Response) -> dict:
        if response.is_success:
            return response.json()
        raise PaymentGatewayError(f"PayPal request failed ({response.status_code}): {response.text}")

    async def _post(self, path: str, **kwargs) -> dict:
        try:
            async with self._client() as client:
                response = await client.post(path, **kwargs)
        except httpx.HTTPError as e:
            raise PaymentGatewayError(f"PayPal unreachable: {e}") from e
        return self._handle_response(response)

    async def generate_access_token(self) -> str:
        data = await self._post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.app_secret),
        )
        return data["access_token"]

    async def _authorized_post(self, path: str, payload: dict | None = None) -> dict:
        token = await self.generate_access_token()
        return await self._post(
            path,
            json=payload,
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        )

    async def create_order(self, price: Decimal) -> dict:
        """Open a remote order to be approved by the buyer in the PayPal popup."""
        return await self._authorized_post(
            "/v2/checkout/orders",
            {
                "intent": "CAPTURE",
                "purchase_units": [{"amount": {"currency_code": "USD", "value": f"{Decimal(price):.2f}"}}],
            },
        )

    async def capture_payment(self, paypal_order_id: str) -> dict:
        return await self._authorized_post(f"/v2/checkout/orders/{paypal_order_id}/capture")


_current_client: PaypalClient | None = None


def get_paypal_client() -> PaypalClient:
    global _current_client
    if _current_client is None:
        _current_client = PaypalClient()
    return _current_client


def set_paypal_client(client) -> None:
    global _current_client
    _current_client = client


def reset_paypal_client() -> None:
    global _current_client
    _current_client = None
