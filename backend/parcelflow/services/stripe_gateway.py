"""
ParcelFlow Backend — Stripe Payment Gateway
=============================================

What:  PaymentGateway that creates Stripe PaymentIntents over the REST API.
How:   One form-encoded POST /v1/payment_intents per call with an httpx
       AsyncClient, authenticated with the secret key. Only the client
       secret is handed back to the browser, which confirms the card itself.

Failure policy:
    Transport errors, non-2xx answers and malformed bodies all become
    PaymentGatewayError (HTTP 500) immediately. The request is not retried:
    a retried create could leave two live intents for one checkout.
"""

import logging
from typing import Optional

import httpx

from parcelflow.config import settings
from parcelflow.exceptions import PaymentGatewayError
from parcelflow.services.gateway_base import PaymentGateway, PaymentIntent

logger = logging.getLogger(__name__)


class StripePaymentGateway(PaymentGateway):

    def __init__(
        self,
        secret_key: Optional[str] = None,
        api_base: Optional[str] = None,
        currency: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self.api_base = api_base or settings.stripe_api_base
        self.currency = currency or settings.payment_currency
        self.timeout = timeout or settings.payment_gateway_timeout
        # Injected in tests (httpx.MockTransport)
        self.transport = transport

    async def create_payment_intent(self, amount: int) -> PaymentIntent:
        if not self.secret_key:
            logger.error("Payment intent requested but STRIPE_SECRET_KEY is not configured")
            raise PaymentGatewayError(context={"reason": "not_configured"})

        form = {
            "amount": str(amount),
            "currency": self.currency,
            "payment_method_types[]": "card",
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.api_base,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.post(
                    "/payment_intents",
                    data=form,
                    auth=(self.secret_key, ""),
                )
        except httpx.HTTPError as e:
            logger.error("Stripe request failed: %s", str(e))
            raise PaymentGatewayError(context={"error_type": type(e).__name__})

        if response.status_code >= 400:
            gateway_error = {}
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                gateway_error = body["error"]
            logger.error(
                "Stripe rejected payment intent (status=%d, code=%s): %s",
                response.status_code,
                gateway_error.get("code"),
                gateway_error.get("message"),
            )
            raise PaymentGatewayError(
                context={"status": response.status_code, "code": gateway_error.get("code")},
            )

        try:
            body = response.json()
            client_secret = body["client_secret"]
        except (ValueError, KeyError, TypeError):
            logger.error("Stripe answered without a client secret")
            raise PaymentGatewayError(context={"reason": "malformed_response"})

        logger.info("Payment intent %s created for %d %s", body.get("id"), amount, self.currency)
        return PaymentIntent(
            id=body.get("id"),
            client_secret=client_secret,
            amount=body.get("amount", amount),
            currency=body.get("currency", self.currency),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
payment_gateway = StripePaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency; tests override it with a stub gateway."""
    return payment_gateway
