"""
Payment processor port (interface).

The processor is an opaque upstream: it creates hosted-checkout
preferences and direct charges, and reports a payment's status.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass
class PreferenceRequest:
    """Hosted checkout preference to create at the processor."""

    external_reference: str
    item_id: str
    title: str
    quantity: int
    unit_price: Decimal
    currency: str
    payer_email: str
    payer_name: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ProcessorPreference:
    """Hosted checkout preference created at the processor."""

    id: str
    init_point: Optional[str]
    sandbox_init_point: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChargeRequest:
    """Direct, server-initiated charge."""

    external_reference: str
    amount: Decimal
    description: str
    payment_method_id: str
    payer_email: str
    item_id: str
    item_title: str
    quantity: int
    unit_price: Decimal
    idempotency_key: str
    token: Optional[str] = None
    installments: Optional[int] = None
    issuer_id: Optional[str] = None
    payer_first_name: Optional[str] = None
    payer_last_name: Optional[str] = None
    identification_type: Optional[str] = None
    identification_number: Optional[str] = None
    ip_address: Optional[str] = None
    device_id: Optional[str] = None
    tracking_id: Optional[str] = None


@dataclass
class ProcessorPayment:
    """A payment as reported by the processor."""

    id: str
    status: Optional[str]
    status_detail: Optional[str] = None
    external_reference: Optional[str] = None
    currency: Optional[str] = None
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    ticket_url: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class PaymentProcessorClient(ABC):
    """
    Abstract payment processor client.

    Implementations raise UpstreamUnavailableError when the processor
    cannot be reached and PaymentProcessorError when it rejects a request.
    """

    @abstractmethod
    async def create_preference(self, request: PreferenceRequest) -> ProcessorPreference:
        """
        Create a hosted checkout preference.

        Args:
            request: PreferenceRequest

        Returns:
            ProcessorPreference
        """
        pass

    @abstractmethod
    async def create_charge(self, request: ChargeRequest) -> ProcessorPayment:
        """
        Create a direct charge.

        Args:
            request: ChargeRequest

        Returns:
            ProcessorPayment with the synchronous outcome
        """
        pass

    @abstractmethod
    async def get_payment(self, payment_id: str) -> Optional[ProcessorPayment]:
        """
        Fetch a payment by the processor's id.

        Args:
            payment_id: Processor payment id

        Returns:
            ProcessorPayment or None if the processor does not know it
        """
        pass
