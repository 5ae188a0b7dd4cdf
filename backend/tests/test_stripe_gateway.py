"""
ParcelFlow Backend — Stripe Gateway Tests
===========================================

What:  Tests for StripePaymentGateway's request shape and failure mapping.
How:   httpx.MockTransport answers in place of the Stripe API; no network.
"""

import base64
from urllib.parse import parse_qs

import httpx
import pytest

from parcelflow.exceptions import PaymentGatewayError
from parcelflow.services.stripe_gateway import StripePaymentGateway


def gateway_with(handler, secret_key="sk_test_abc"):
    return StripePaymentGateway(
        secret_key=secret_key,
        api_base="https://stripe.test/v1",
        currency="bdt",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestCreatePaymentIntent:

    def setup_method(self):
        self.requests = []

    @pytest.mark.asyncio
    async def test_posts_form_and_returns_client_secret(self):
        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(
                200,
                json={"id": "pi_1", "client_secret": "pi_1_secret", "amount": 50000, "currency": "bdt"},
            )

        intent = await gateway_with(handler).create_payment_intent(50000)

        assert intent.client_secret == "pi_1_secret"
        assert intent.id == "pi_1"
        assert intent.amount == 50000

        request = self.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/payment_intents"
        form = parse_qs(request.content.decode())
        assert form == {"amount": ["50000"], "currency": ["bdt"], "payment_method_types[]": ["card"]}
        expected_auth = "Basic " + base64.b64encode(b"sk_test_abc:").decode()
        assert request.headers["Authorization"] == expected_auth

    @pytest.mark.asyncio
    async def test_declined_request_maps_to_gateway_error(self):
        def handler(request):
            return httpx.Response(402, json={"error": {"code": "card_declined", "message": "Declined"}})

        with pytest.raises(PaymentGatewayError) as exc_info:
            await gateway_with(handler).create_payment_intent(100)

        assert exc_info.value.context == {"status": 402, "code": "card_declined"}

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(PaymentGatewayError) as exc_info:
            await gateway_with(handler).create_payment_intent(100)

        assert exc_info.value.context["status"] == 502

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["oops"], {"error": "card_declined"}, "nope"])
    async def test_unexpected_error_body_shape(self, body):
        def handler(request):
            return httpx.Response(400, json=body)

        with pytest.raises(PaymentGatewayError) as exc_info:
            await gateway_with(handler).create_payment_intent(100)

        assert exc_info.value.context == {"status": 400, "code": None}

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PaymentGatewayError) as exc_info:
            await gateway_with(handler).create_payment_intent(100)

        assert exc_info.value.context["error_type"] == "ConnectError"

    @pytest.mark.asyncio
    async def test_missing_client_secret(self):
        def handler(request):
            return httpx.Response(200, json={"id": "pi_1"})

        with pytest.raises(PaymentGatewayError):
            await gateway_with(handler).create_payment_intent(100)

    @pytest.mark.asyncio
    async def test_unconfigured_key_never_calls_out(self):
        def handler(request):
            self.requests.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(PaymentGatewayError) as exc_info:
            await gateway_with(handler, secret_key="").create_payment_intent(100)

        assert exc_info.value.context["reason"] == "not_configured"
        assert self.requests == []
