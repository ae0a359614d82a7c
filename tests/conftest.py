"""
Pytest configuration and shared fixtures.
"""

import uuid
from decimal import Decimal
from typing import Dict, List, Optional

import pytest
from asgiref.sync import async_to_sync

from activations.application.services.activation_audit import ActivationAuditor
from activations.infrastructure.repositories.django_activation_log_repository import (
    DjangoActivationLogRepository,
)
from core.domain.events import DomainEvent
from core.infrastructure.events import InMemoryEventBus
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from products.domain.product import Product
from products.infrastructure.adapters.django_artifact_locator import DjangoArtifactLocator
from products.infrastructure.repositories.django_product_repository import DjangoProductRepository
from purchases.application.services.provisioning_coordinator import ProvisioningCoordinator
from purchases.application.services.webhook_authenticator import compute_signature
from purchases.domain.purchase import Purchase, PurchaseOrigin, PurchaseStatus
from purchases.infrastructure.repositories.django_purchase_repository import (
    DjangoPurchaseRepository,
)
from purchases.ports.payment_processor import (
    ChargeRequest,
    PaymentProcessorClient,
    PreferenceRequest,
    ProcessorPayment,
    ProcessorPreference,
)

WEBHOOK_SECRET = "test-webhook-secret"


class RecordingEventBus(InMemoryEventBus):
    """Event bus that keeps every published event."""

    def __init__(self):
        super().__init__()
        self.published: List[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.published.append(event)
        await super().publish(event)

    def of_type(self, event_type) -> List[DomainEvent]:
        return [event for event in self.published if isinstance(event, event_type)]


class FakeProcessorClient(PaymentProcessorClient):
    """
    In-memory payment processor.

    ``charge_status`` is the status returned by direct charges; payments
    registered with ``add_payment`` are served by ``get_payment``.
    """

    def __init__(self, charge_status: str = "approved"):
        self.charge_status = charge_status
        self.preferences: List[PreferenceRequest] = []
        self.charges: List[ChargeRequest] = []
        self.payments: Dict[str, ProcessorPayment] = {}
        self._sequence = 0

    def _next_id(self) -> str:
        self._sequence += 1
        return str(9000 + self._sequence)

    def add_payment(
        self, payment_id: str, status: Optional[str], external_reference: Optional[str] = None
    ) -> ProcessorPayment:
        payment = ProcessorPayment(
            id=payment_id,
            status=status,
            external_reference=external_reference,
            raw={"id": payment_id, "status": status},
        )
        self.payments[payment_id] = payment
        return payment

    async def create_preference(self, request: PreferenceRequest) -> ProcessorPreference:
        self.preferences.append(request)
        preference_id = f"pref-{self._next_id()}"
        return ProcessorPreference(
            id=preference_id,
            init_point=f"https://checkout.example.com/{preference_id}",
            sandbox_init_point=f"https://sandbox.checkout.example.com/{preference_id}",
        )

    async def create_charge(self, request: ChargeRequest) -> ProcessorPayment:
        self.charges.append(request)
        payment = self.add_payment(
            self._next_id(), self.charge_status, external_reference=request.external_reference
        )
        if request.payment_method_id == "pix":
            payment.qr_code = "00020126pix"
            payment.qr_code_base64 = "iVBORw0KGgo="
            payment.ticket_url = "https://pix.example.com/ticket"
        return payment

    async def get_payment(self, payment_id: str) -> Optional[ProcessorPayment]:
        return self.payments.get(payment_id)


def signed_headers(data_id: str, secret: str = WEBHOOK_SECRET, request_id: str = "req-1") -> dict:
    """Headers the processor would send for a notification about data_id."""
    ts = "1700000000"
    signature = compute_signature(secret, data_id, request_id, ts)
    return {"x-signature": f"ts={ts},v1={signature}", "x-request-id": request_id}


@pytest.fixture
def product_repository():
    """Fixture for ProductRepository."""
    return DjangoProductRepository()


@pytest.fixture
def purchase_repository():
    """Fixture for PurchaseRepository."""
    return DjangoPurchaseRepository()


@pytest.fixture
def license_repository():
    """Fixture for LicenseRepository."""
    return DjangoLicenseRepository()


@pytest.fixture
def activation_log_repository():
    """Fixture for ActivationLogRepository."""
    return DjangoActivationLogRepository()


@pytest.fixture
def auditor(activation_log_repository):
    """Fixture for ActivationAuditor."""
    return ActivationAuditor(activation_log_repository)


@pytest.fixture
def recording_bus():
    """Fixture for an event bus that records what was published."""
    return RecordingEventBus()


@pytest.fixture
def artifact_locator():
    """Fixture for ArtifactLocator."""
    return DjangoArtifactLocator(base_url="https://downloads.example.com/")


@pytest.fixture
def coordinator(
    purchase_repository, license_repository, product_repository, artifact_locator, recording_bus
):
    """Fixture for ProvisioningCoordinator publishing to the recording bus."""
    return ProvisioningCoordinator(
        purchase_repository=purchase_repository,
        license_repository=license_repository,
        product_repository=product_repository,
        artifact_locator=artifact_locator,
        bus=recording_bus,
    )


@pytest.fixture
def processor_client():
    """Fixture for a fake payment processor."""
    return FakeProcessorClient()


def _save_product(product_repository, name: str, price: Decimal, **kwargs) -> Product:
    unique_id = uuid.uuid4().hex[:8]
    product = Product.create(
        name=name,
        slug=f"{name.lower().replace(' ', '-')}-{unique_id}",
        price=price,
        version="2.1.0",
        artifact_url=f"builds/{unique_id}/setup.exe",
        **kwargs,
    )
    return async_to_sync(product_repository.save)(product)


@pytest.fixture
def free_product(db, product_repository):
    """Fixture for a published zero-priced Product saved in database."""
    return _save_product(product_repository, "Desk Timer", Decimal("0"))


@pytest.fixture
def paid_product(db, product_repository):
    """Fixture for a published paid Product saved in database."""
    return _save_product(product_repository, "Desk Timer Pro", Decimal("49.90"))


@pytest.fixture
def make_purchase(db, purchase_repository):
    """Factory fixture saving a Purchase, optionally moved to a given status."""

    def _make(
        product: Product,
        email: str = "buyer@example.com",
        quantity: int = 1,
        status: Optional[PurchaseStatus] = None,
        processor_ref: Optional[str] = None,
    ) -> Purchase:
        purchase = Purchase.create(
            product_id=product.id,
            quantity=quantity,
            unit_price=product.price,
            payer_email=email,
            processor_ref=processor_ref,
            origin=PurchaseOrigin.FREE if product.is_free else PurchaseOrigin.CHECKOUT,
            currency=product.currency,
        )
        saved = async_to_sync(purchase_repository.save)(purchase)
        if status is not None and saved.status != status:
            saved = async_to_sync(purchase_repository.transition_status)(saved.id, status)
        return saved

    return _make


@pytest.fixture
def provisioned_purchase(make_purchase, coordinator):
    """Factory fixture saving an approved Purchase with its seats materialized."""

    def _make(product: Product, email: str = "buyer@example.com", quantity: int = 1):
        purchase = make_purchase(product, email=email, quantity=quantity)
        if purchase.status != PurchaseStatus.APPROVED:
            async_to_sync(coordinator.apply_status)(purchase, PurchaseStatus.APPROVED)
        else:
            async_to_sync(coordinator.provision_approved)(purchase)
        return purchase

    return _make


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def staff_client(db, django_user_model):
    """Fixture for DRF API client authenticated as staff."""
    from rest_framework.test import APIClient

    user = django_user_model.objects.create_user(
        username="support", password="support-pass", is_staff=True
    )
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def fake_processor(monkeypatch):
    """Install a fake processor and a known webhook secret in the purchase views."""
    from api.v1.purchases import views
    from purchases.application.services.webhook_authenticator import WebhookAuthenticator

    client = FakeProcessorClient()
    monkeypatch.setattr(views, "_processor_client", client)
    monkeypatch.setattr(views, "_authenticator", WebhookAuthenticator(WEBHOOK_SECRET))
    return client
