"""
Mercado Pago implementation of the PaymentProcessorClient port.

Talks to the Mercado Pago REST API with ``requests``. The client is built
once from settings by ``build_processor_client`` and injected into the
purchase handlers.
"""
import logging
import time
from decimal import Decimal
from typing import Any, Dict, Optional

import requests
from asgiref.sync import sync_to_async
from django.conf import settings

from core.domain.exceptions import PaymentProcessorError, UpstreamUnavailableError
from core.metrics import payment_processor_request_duration_seconds
from purchases.ports.payment_processor import (
    ChargeRequest,
    PaymentProcessorClient,
    PreferenceRequest,
    ProcessorPayment,
    ProcessorPreference,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.mercadopago.com"
PROCESSING_MODES = ("aggregator", "gateway")


def _money(value: Decimal) -> float:
    return float(value)


class MercadoPagoClient(PaymentProcessorClient):
    """
    Mercado Pago REST client.

    Network failures and 5xx answers raise UpstreamUnavailableError;
    4xx answers raise PaymentProcessorError with the processor's message.
    """

    def __init__(
        self,
        access_token: str,
        api_url: str = DEFAULT_API_URL,
        notification_url: Optional[str] = None,
        success_url: Optional[str] = None,
        failure_url: Optional[str] = None,
        pending_url: Optional[str] = None,
        processing_mode: str = "aggregator",
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ):
        if not access_token:
            raise ValueError("Mercado Pago access token is required")
        self.api_url = api_url.rstrip("/")
        self.notification_url = notification_url or None
        self.success_url = success_url
        self.failure_url = failure_url
        self.pending_url = pending_url
        self.processing_mode = (
            processing_mode.lower() if processing_mode.lower() in PROCESSING_MODES else "aggregator"
        )
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "User-Agent": "Entitlement-Service/1.0",
            }
        )

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        allow_not_found: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """
        Perform one API call and decode the JSON answer.

        Args:
            method: HTTP method
            path: API path
            operation: Label for metrics and logs
            payload: Optional JSON body
            headers: Optional extra headers
            allow_not_found: Return None on 404 instead of raising

        Returns:
            Decoded response body, or None for an allowed 404
        """
        url = f"{self.api_url}{path}"
        start_time = time.time()
        try:
            response = self.session.request(
                method, url, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error("Mercado Pago %s failed: %s", operation, e)
            raise UpstreamUnavailableError(
                "Payment processor unreachable, please try again"
            ) from e
        finally:
            payment_processor_request_duration_seconds.labels(operation=operation).observe(
                time.time() - start_time
            )

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.status_code >= 500:
            logger.error(
                "Mercado Pago %s returned %s", operation, response.status_code,
                extra={"processor_status": response.status_code},
            )
            raise UpstreamUnavailableError("Payment processor unavailable, please try again")
        if response.status_code == 404 and allow_not_found:
            return None
        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning(
                "Mercado Pago %s rejected with %s: %s", operation, response.status_code, message
            )
            raise PaymentProcessorError(message or "Payment processor rejected the request")
        return body

    def _back_url(self, template: Optional[str], item_id: str) -> Optional[str]:
        return template.replace(":id", item_id) if template else None

    def _to_payment(self, body: Dict[str, Any]) -> ProcessorPayment:
        transaction_data = (body.get("point_of_interaction") or {}).get("transaction_data") or {}
        return ProcessorPayment(
            id=str(body.get("id", "")),
            status=body.get("status"),
            status_detail=body.get("status_detail"),
            external_reference=body.get("external_reference"),
            currency=body.get("currency_id"),
            qr_code=transaction_data.get("qr_code"),
            qr_code_base64=transaction_data.get("qr_code_base64"),
            ticket_url=transaction_data.get("ticket_url"),
            raw=body,
        )

    @sync_to_async(thread_sensitive=False)
    def create_preference(self, request: PreferenceRequest) -> ProcessorPreference:
        payload = {
            "items": [
                {
                    "id": request.item_id,
                    "title": request.title,
                    "description": request.description or "",
                    "quantity": request.quantity,
                    "currency_id": request.currency,
                    "unit_price": _money(request.unit_price),
                }
            ],
            "payer": {"email": request.payer_email, "name": request.payer_name},
            "back_urls": {
                "success": self._back_url(self.success_url, request.item_id),
                "failure": self._back_url(self.failure_url, request.item_id),
                "pending": self._back_url(self.pending_url, request.item_id),
            },
            "auto_return": "approved",
            "external_reference": request.external_reference,
        }
        if self.notification_url:
            payload["notification_url"] = self.notification_url

        body = self._request("POST", "/checkout/preferences", "create_preference", payload)
        logger.info(
            "Mercado Pago preference %s created for %s",
            body.get("id"),
            request.external_reference,
        )
        return ProcessorPreference(
            id=str(body["id"]),
            init_point=body.get("init_point"),
            sandbox_init_point=body.get("sandbox_init_point"),
            raw=body,
        )

    @sync_to_async(thread_sensitive=False)
    def create_charge(self, request: ChargeRequest) -> ProcessorPayment:
        payer: Dict[str, Any] = {"email": request.payer_email}
        if request.payer_first_name:
            payer["first_name"] = request.payer_first_name
        if request.payer_last_name:
            payer["last_name"] = request.payer_last_name
        if request.identification_type and request.identification_number:
            payer["identification"] = {
                "type": request.identification_type,
                "number": request.identification_number,
            }

        payload: Dict[str, Any] = {
            "description": request.description,
            "external_reference": request.external_reference,
            "transaction_amount": _money(request.amount),
            "payment_method_id": request.payment_method_id,
            "payer": payer,
            "additional_info": {
                "items": [
                    {
                        "id": request.item_id,
                        "title": request.item_title,
                        "category_id": "software",
                        "quantity": request.quantity,
                        "unit_price": _money(request.unit_price),
                    }
                ],
                "payer": {
                    "first_name": request.payer_first_name,
                    "last_name": request.payer_last_name,
                },
                "ip_address": request.ip_address or "",
            },
            "binary_mode": False,
            "capture": True,
            "processing_mode": self.processing_mode,
            "metadata": {"source": "entitlement-service"},
        }
        if request.installments:
            payload["installments"] = request.installments
        if request.issuer_id:
            payload["issuer_id"] = request.issuer_id
        if request.token:
            payload["token"] = request.token
        if self.notification_url:
            payload["notification_url"] = self.notification_url

        headers = {"X-Idempotency-Key": request.idempotency_key}
        if request.device_id:
            headers["X-Device-Id"] = request.device_id
        if request.tracking_id:
            headers["X-Tracking-Id"] = request.tracking_id

        body = self._request("POST", "/v1/payments", "create_charge", payload, headers=headers)
        payment = self._to_payment(body)
        logger.info(
            "Mercado Pago charge %s for %s returned %s",
            payment.id,
            request.external_reference,
            payment.status,
        )
        return payment

    @sync_to_async(thread_sensitive=False)
    def get_payment(self, payment_id: str) -> Optional[ProcessorPayment]:
        body = self._request(
            "GET", f"/v1/payments/{payment_id}", "get_payment", allow_not_found=True
        )
        if body is None:
            return None
        return self._to_payment(body)


def build_processor_client() -> Optional[PaymentProcessorClient]:
    """
    Build the payment processor client from settings.

    Returns:
        MercadoPagoClient, or None when no access token is configured
    """
    access_token = getattr(settings, "MERCADOPAGO_ACCESS_TOKEN", "")
    if not access_token:
        logger.warning("MERCADOPAGO_ACCESS_TOKEN not set, paid checkout is disabled")
        return None
    return MercadoPagoClient(
        access_token=access_token,
        api_url=getattr(settings, "MERCADOPAGO_API_URL", DEFAULT_API_URL),
        notification_url=getattr(settings, "MERCADOPAGO_WEBHOOK_URL", None),
        success_url=getattr(settings, "MERCADOPAGO_SUCCESS_URL", None),
        failure_url=getattr(settings, "MERCADOPAGO_FAILURE_URL", None),
        pending_url=getattr(settings, "MERCADOPAGO_PENDING_URL", None),
        processing_mode=getattr(settings, "MERCADOPAGO_PROCESSING_MODE", "aggregator"),
        timeout=getattr(settings, "MERCADOPAGO_TIMEOUT_SECONDS", 15),
    )
