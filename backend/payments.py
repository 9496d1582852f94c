"""Payment provider adapters.

Both adapters expose ``client_key()``, ``create(total)`` and
``capture(reference)``. Missing credentials raise ``PaymentNotConfigured``;
provider faults raise ``PaymentProviderError`` carrying the provider message.
"""

from __future__ import annotations
from typing import Any

import httpx
import stripe
from starlette.concurrency import run_in_threadpool

from logging_config import get_logger
from schemas import StoreConfig

logger = get_logger("payments")

CURRENCY = "USD"


class PaymentNotConfigured(Exception):
    def __init__(self, provider: str):
        super().__init__(f"{provider} not configured")
        self.provider = provider


class PaymentProviderError(Exception):
    pass


def to_minor_units(total: float) -> int:
    return int(round(total * 100))


class StripeAdapter:
    name = "Stripe"

    def __init__(self, config: StoreConfig):
        self.secret_key = config.stripe_secret_key
        self.publishable_key = config.stripe_publishable_key

    def client_key(self) -> str:
        return self.publishable_key or ""

    def _require_key(self) -> str:
        if not self.secret_key:
            raise PaymentNotConfigured(self.name)
        return self.secret_key

    async def create(self, total: float) -> dict[str, Any]:
        api_key = self._require_key()
        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                api_key=api_key,
                amount=to_minor_units(total),
                currency=CURRENCY.lower(),
                automatic_payment_methods={"enabled": True},
            )
            return {"id": intent["id"], "client_secret": intent["client_secret"]}
        except Exception as e:
            logger.exception("stripe_create_intent_failed")
            raise PaymentProviderError(_stripe_message(e)) from e

    async def capture(self, reference: str) -> dict[str, Any]:
        """Fetch the intent confirmed client-side and report its status."""
        api_key = self._require_key()
        try:
            intent = await run_in_threadpool(stripe.PaymentIntent.retrieve, reference, api_key=api_key)
            return {"id": intent["id"], "status": intent["status"]}
        except Exception as e:
            logger.exception("stripe_retrieve_intent_failed", payment_intent_id=reference)
            raise PaymentProviderError(_stripe_message(e)) from e


class PayPalAdapter:
    name = "PayPal"

    def __init__(self, config: StoreConfig, api_base: str, transport: httpx.AsyncBaseTransport | None = None):
        self.client_id = config.paypal_client_id
        self.client_secret = config.paypal_client_secret
        self.api_base = api_base.rstrip("/")
        self.transport = transport

    def client_key(self) -> str:
        return self.client_id or ""

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.api_base, transport=self.transport)

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        response.raise_for_status()
        return response.json()["access_token"]

    async def _call(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        if not (self.client_id and self.client_secret):
            raise PaymentNotConfigured(self.name)
        try:
            async with self._client() as client:
                token = await self._access_token(client)
                response = await client.post(
                    path,
                    json=body or {},
                    headers={"Authorization": f"Bearer {token}", "Prefer": "return=representation"},
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("paypal_request_failed", path=path, status=e.response.status_code, body=e.response.text)
            raise PaymentProviderError(_paypal_message(e.response)) from e
        except httpx.HTTPError as e:
            logger.error("paypal_request_failed", path=path, error=str(e))
            raise PaymentProviderError(str(e)) from e
        except (KeyError, ValueError) as e:
            logger.error("paypal_unexpected_response", path=path, error=repr(e))
            raise PaymentProviderError(f"Unexpected PayPal response: {e!r}") from e

    async def create(self, total: float) -> dict[str, Any]:
        order = await self._call(
            "/v2/checkout/orders",
            {
                "intent": "CAPTURE",
                "purchase_units": [{"amount": {"currency_code": CURRENCY, "value": f"{total:.2f}"}}],
            },
        )
        return {"id": order["id"]}

    async def capture(self, reference: str) -> dict[str, Any]:
        result = await self._call(f"/v2/checkout/orders/{reference}/capture")
        return {"id": result.get("id", reference), "status": result.get("status", "")}


def _paypal_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"PayPal error {response.status_code}"
    return payload.get("message") or payload.get("error_description") or payload.get("name") or str(payload)


def _stripe_message(error: Exception) -> str:
    if isinstance(error, stripe.StripeError):
        return error.user_message or str(error)
    return str(error) or error.__class__.__name__
