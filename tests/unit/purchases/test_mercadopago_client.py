"""
Unit tests for the Mercado Pago client.
"""

from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from core.domain.exceptions import PaymentProcessorError, UpstreamUnavailableError
from purchases.infrastructure.adapters.mercadopago_client import MercadoPagoClient
from purchases.ports.payment_processor import ChargeRequest, PreferenceRequest


def _response(status_code=200, body=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    response.text = ""
    return response


@pytest.fixture
def session():
    session = Mock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def client(session):
    return MercadoPagoClient(
        access_token="TEST-token",
        api_url="https://api.example.com/",
        notification_url="https://shop.example.com/api/v1/purchases/webhook",
        success_url="https://shop.example.com/products/:id/thanks",
        session=session,
    )


def _charge(**overrides):
    fields = dict(
        external_reference="DIRECT-1",
        amount=Decimal("99.80"),
        description="Desk Timer Pro",
        payment_method_id="visa",
        payer_email="buyer@example.com",
        item_id="prod-1",
        item_title="Desk Timer Pro",
        quantity=2,
        unit_price=Decimal("49.90"),
        idempotency_key="order-77",
        token="card-token",
        installments=1,
        payer_first_name="Ana",
        identification_type="CPF",
        identification_number="12345678909",
    )
    fields.update(overrides)
    return ChargeRequest(**fields)


class TestClientSetup:
    """Tests for client construction."""

    def test_requires_access_token(self, session):
        """Test an empty token is refused."""
        with pytest.raises(ValueError):
            MercadoPagoClient(access_token="", session=session)

    def test_sets_bearer_token(self, client, session):
        """Test requests carry the access token."""
        assert session.headers["Authorization"] == "Bearer TEST-token"
        assert client.api_url == "https://api.example.com"

    def test_unknown_processing_mode_falls_back(self, session):
        """Test only aggregator and gateway are accepted."""
        client = MercadoPagoClient(access_token="t", processing_mode="direct", session=session)

        assert client.processing_mode == "aggregator"


@pytest.mark.asyncio
class TestMercadoPagoClient:
    """Tests for the REST calls."""

    async def test_create_preference(self, client, session):
        """Test the preference payload and the returned URLs."""
        session.request.return_value = _response(
            201,
            {
                "id": "pref-1",
                "init_point": "https://mp.example.com/checkout/pref-1",
                "sandbox_init_point": "https://sandbox.mp.example.com/checkout/pref-1",
            },
        )

        preference = await client.create_preference(
            PreferenceRequest(
                external_reference="PAY-1",
                item_id="prod-1",
                title="Desk Timer Pro",
                quantity=3,
                unit_price=Decimal("49.90"),
                currency="BRL",
                payer_email="buyer@example.com",
            )
        )

        assert preference.id == "pref-1"
        assert preference.init_point.endswith("pref-1")
        method, url = session.request.call_args.args
        payload = session.request.call_args.kwargs["json"]
        assert (method, url) == ("POST", "https://api.example.com/checkout/preferences")
        assert payload["external_reference"] == "PAY-1"
        assert payload["items"][0]["quantity"] == 3
        assert payload["items"][0]["unit_price"] == 49.9
        assert payload["back_urls"]["success"] == "https://shop.example.com/products/prod-1/thanks"
        assert payload["back_urls"]["failure"] is None
        assert payload["notification_url"].endswith("/webhook")

    async def test_create_charge(self, client, session):
        """Test the charge payload, headers and PIX data."""
        session.request.return_value = _response(
            201,
            {
                "id": 123,
                "status": "pending",
                "status_detail": "pending_waiting_transfer",
                "external_reference": "DIRECT-1",
                "point_of_interaction": {
                    "transaction_data": {"qr_code": "000201", "ticket_url": "https://t"}
                },
            },
        )

        payment = await client.create_charge(_charge(device_id="dev-1"))

        assert payment.id == "123"
        assert payment.status == "pending"
        assert payment.qr_code == "000201"
        assert payment.qr_code_base64 is None
        kwargs = session.request.call_args.kwargs
        assert kwargs["headers"] == {"X-Idempotency-Key": "order-77", "X-Device-Id": "dev-1"}
        assert kwargs["json"]["transaction_amount"] == 99.8
        assert kwargs["json"]["token"] == "card-token"
        assert kwargs["json"]["payer"]["identification"] == {
            "type": "CPF",
            "number": "12345678909",
        }

    async def test_charge_without_token_omits_it(self, client, session):
        """Test a PIX charge sends no card fields."""
        session.request.return_value = _response(201, {"id": 1, "status": "pending"})

        await client.create_charge(_charge(payment_method_id="pix", token=None, installments=None))

        payload = session.request.call_args.kwargs["json"]
        assert "token" not in payload
        assert "installments" not in payload

    async def test_get_payment(self, client, session):
        """Test a payment is fetched and mapped."""
        session.request.return_value = _response(
            200, {"id": 55, "status": "approved", "external_reference": "PAY-1"}
        )

        payment = await client.get_payment("55")

        assert payment.id == "55"
        assert payment.external_reference == "PAY-1"
        assert session.request.call_args.args == ("GET", "https://api.example.com/v1/payments/55")

    async def test_get_unknown_payment(self, client, session):
        """Test a 404 is reported as no payment."""
        session.request.return_value = _response(404, {"message": "not found"})

        assert await client.get_payment("55") is None

    async def test_client_error_raises_processor_error(self, client, session):
        """Test a 4xx carries the processor message."""
        session.request.return_value = _response(400, {"message": "invalid card token"})

        with pytest.raises(PaymentProcessorError) as exc_info:
            await client.create_charge(_charge())

        assert exc_info.value.message == "invalid card token"

    async def test_server_error_is_upstream_unavailable(self, client, session):
        """Test a 5xx maps to an unavailable upstream."""
        session.request.return_value = _response(502, {})

        with pytest.raises(UpstreamUnavailableError):
            await client.get_payment("55")

    async def test_network_error_is_upstream_unavailable(self, client, session):
        """Test connection failures map to an unavailable upstream."""
        session.request.side_effect = requests.exceptions.ConnectTimeout("timed out")

        with pytest.raises(UpstreamUnavailableError):
            await client.create_preference(
                PreferenceRequest(
                    external_reference="PAY-1",
                    item_id="prod-1",
                    title="Desk Timer Pro",
                    quantity=1,
                    unit_price=Decimal("49.90"),
                    currency="BRL",
                    payer_email="buyer@example.com",
                )
            )
