"""
PayPal Payment Processor Implementation.

NO DICTIONARIES - All data uses strongly typed models.

Uses PayPal Orders API v2 with an OAuth2 client-credentials token.
https://developer.paypal.com/docs/api/orders/v2/
"""

import time
from urllib.parse import quote

import httpx
from structlog import get_logger

from banner_credits.exceptions import PaymentNotConfiguredError, PaymentProviderError
from banner_credits.services.payment_processor import CaptureResult, OrderResult

logger = get_logger(__name__)

# Reported when PayPal answers for a different order than the one requested
CAPTURE_ORDER_MISMATCH = "ORDER_ID_MISMATCH"


class PayPalProcessor:
    """
    PayPal payment processor.

    Implements the PaymentProcessor protocol for PayPal checkout orders.
    """

    name = "paypal"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        api_url: str,
        price: str,
        currency: str,
        description: str,
        timeout_seconds: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize PayPal processor.

        Args:
            client_id: PayPal REST app client ID
            client_secret: PayPal REST app secret
            api_url: Sandbox or live base URL
            price: Order amount as a decimal string (e.g. "20.00")
            currency: ISO 4217 currency code
            description: Purchase unit description shown to the buyer
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_url = api_url.rstrip("/")
        self.price = price
        self.currency = currency
        self.description = description
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client
        self._access_token: str | None = None
        self._token_expires_at: float = 0

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._http_client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _ensure_configured(self) -> None:
        if not self.client_id or not self.client_secret:
            raise PaymentNotConfiguredError(self.name)

    async def _get_access_token(self) -> str:
        """
        Get an OAuth2 access token.

        Tokens are reused until 60s before PayPal says they expire.
        """
        now = time.time()
        if self._access_token and now < self._token_expires_at - 60:
            return self._access_token

        try:
            response = await self.http_client.post(
                f"{self.api_url}/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
            )
            response.raise_for_status()
            token_data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "paypal_token_request_failed",
                status=exc.response.status_code,
                text=exc.response.text[:500],
            )
            raise PaymentProviderError(
                f"Failed to generate access token: {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("paypal_token_request_error", error=str(exc))
            raise PaymentProviderError(f"Failed to generate access token: {exc}") from exc

        self._access_token = token_data["access_token"]
        self._token_expires_at = now + int(token_data.get("expires_in", 0))
        return self._access_token

    async def create_order(self) -> OrderResult:
        """Create a CAPTURE-intent order for one subscription month."""
        self._ensure_configured()
        token = await self._get_access_token()

        logger.info("creating_paypal_order", amount=self.price, currency=self.currency)
        try:
            response = await self.http_client.post(
                f"{self.api_url}/v2/checkout/orders",
                headers={"Authorization": f"Bearer {token}"},
                json={
                    "intent": "CAPTURE",
                    "purchase_units": [
                        {
                            "amount": {"currency_code": self.currency, "value": self.price},
                            "description": self.description,
                        }
                    ],
                },
            )
            response.raise_for_status()
            order = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "paypal_order_creation_failed",
                status=exc.response.status_code,
                text=exc.response.text[:500],
            )
            raise PaymentProviderError(
                f"PayPal order creation failed: {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("paypal_order_creation_error", error=str(exc))
            raise PaymentProviderError(f"PayPal order creation failed: {exc}") from exc

        logger.info("paypal_order_created", order_id=order["id"], status=order.get("status"))
        return OrderResult(order_id=order["id"], status=order.get("status", "CREATED"))

    async def capture_order(self, order_id: str) -> CaptureResult:
        """
        Capture an approved order.

        A 4xx from PayPal (order not approved, already captured, ...) is a
        capture that did not complete, not a processor outage. So is a
        response describing any order other than `order_id`.
        """
        self._ensure_configured()
        token = await self._get_access_token()

        logger.info("capturing_paypal_order", order_id=order_id)
        try:
            response = await self.http_client.post(
                f"{self.api_url}/v2/checkout/orders/{quote(order_id, safe='')}/capture",
                headers={"Authorization": f"Bearer {token}"},
                json={},
            )
        except httpx.HTTPError as exc:
            logger.error("paypal_capture_error", order_id=order_id, error=str(exc))
            raise PaymentProviderError(f"PayPal capture failed: {exc}") from exc

        if response.status_code >= 500:
            logger.error(
                "paypal_capture_failed",
                order_id=order_id,
                status=response.status_code,
                text=response.text[:500],
            )
            raise PaymentProviderError(f"PayPal capture failed: {response.status_code}")

        try:
            capture = response.json()
        except ValueError:
            capture = {}

        if response.is_error:
            issue = (capture.get("details") or [{}])[0].get("issue") or capture.get("name")
            logger.warning(
                "paypal_capture_rejected",
                order_id=order_id,
                status=response.status_code,
                issue=issue,
            )
            return CaptureResult(order_id=order_id, status=issue or "REJECTED")

        if capture.get("id") != order_id:
            logger.warning(
                "paypal_capture_order_mismatch",
                order_id=order_id,
                returned_id=capture.get("id"),
            )
            return CaptureResult(order_id=order_id, status=CAPTURE_ORDER_MISMATCH)

        status = capture.get("status", "UNKNOWN")
        logger.info("paypal_order_captured", order_id=order_id, status=status)
        return CaptureResult(order_id=order_id, status=status)
