"""
Purchase domain entity.

A Purchase records one checkout attempt: what was bought, by whom,
for how much, and whether the payment processor captured the money.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from core.domain.exceptions import InvalidPurchaseError
from core.domain.value_objects import Email

MIN_QUANTITY = 1
MAX_QUANTITY = 10


class PurchaseStatus(Enum):
    """Canonical purchase status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value

    @classmethod
    def from_processor(cls, native_status: Optional[str]) -> "PurchaseStatus":
        """
        Fold a payment processor status onto the canonical vocabulary.

        Unknown, empty or missing values map to PENDING.

        Args:
            native_status: Status string reported by the processor

        Returns:
            Canonical PurchaseStatus
        """
        if not native_status:
            return cls.PENDING
        return _PROCESSOR_STATUS_MAP.get(native_status.strip().lower(), cls.PENDING)

    @property
    def rank(self) -> int:
        """Position in the purchase lifecycle; later states never move back."""
        return _STATUS_RANK[self]


_PROCESSOR_STATUS_MAP = {
    "approved": PurchaseStatus.APPROVED,
    "pending": PurchaseStatus.PENDING,
    "authorized": PurchaseStatus.PENDING,
    "in_process": PurchaseStatus.PENDING,
    "in_mediation": PurchaseStatus.PENDING,
    "rejected": PurchaseStatus.REJECTED,
    "cancelled": PurchaseStatus.CANCELLED,
    "refunded": PurchaseStatus.REFUNDED,
    "charged_back": PurchaseStatus.REFUNDED,
}

KNOWN_PROCESSOR_STATUSES = tuple(_PROCESSOR_STATUS_MAP)

_STATUS_RANK = {
    PurchaseStatus.PENDING: 0,
    PurchaseStatus.REJECTED: 1,
    PurchaseStatus.CANCELLED: 1,
    PurchaseStatus.APPROVED: 2,
    PurchaseStatus.REFUNDED: 3,
}


class PurchaseOrigin(Enum):
    """How the purchase was started; used as the id prefix."""

    CHECKOUT = "PAY"
    DIRECT_CHARGE = "DIRECT"
    FREE = "FREE"

    def new_id(self) -> str:
        """Generate a purchase id for this origin."""
        return f"{self.value}-{uuid.uuid4()}"


@dataclass(frozen=True)
class Purchase:
    """
    Purchase domain entity.

    Invariants: amount == unit_price * quantity, amount >= 0,
    1 <= quantity <= 10.
    """

    id: str
    product_id: uuid.UUID
    owner_id: Optional[int]
    status: PurchaseStatus
    amount: Decimal
    unit_price: Decimal
    quantity: int
    currency: str
    payer_email: str
    payer_name: Optional[str]
    payer_document: Optional[str]
    processor_ref: Optional[str]
    raw_response: Optional[str]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate purchase entity."""
        if not self.id:
            raise InvalidPurchaseError("Purchase ID is required")
        if not self.product_id:
            raise InvalidPurchaseError("Product ID is required")
        if not MIN_QUANTITY <= self.quantity <= MAX_QUANTITY:
            raise InvalidPurchaseError(
                f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}"
            )
        if self.unit_price < 0:
            raise InvalidPurchaseError("Unit price cannot be negative")
        if self.amount != self.unit_price * self.quantity:
            raise InvalidPurchaseError("Amount must equal unit price times quantity")

    @classmethod
    def create(
        cls,
        product_id: uuid.UUID,
        quantity: int,
        unit_price: Decimal,
        payer_email: str,
        payer_name: Optional[str] = None,
        payer_document: Optional[str] = None,
        owner_id: Optional[int] = None,
        processor_ref: Optional[str] = None,
        origin: PurchaseOrigin = PurchaseOrigin.CHECKOUT,
        currency: str = "BRL",
        purchase_id: Optional[str] = None,
    ) -> "Purchase":
        """
        Create a new Purchase entity.

        The purchase starts pending, or approved when the amount is zero.

        Args:
            product_id: Product UUID
            quantity: Number of seats bought
            unit_price: Price per seat
            payer_email: Buyer email, the key licenses are bound to
            payer_name: Optional buyer display name
            payer_document: Optional tax document used for invoicing
            owner_id: Optional account id of the buyer
            processor_ref: Optional processor preference or charge id
            origin: How the purchase was started
            currency: ISO currency code
            purchase_id: Optional id (generated from origin if not provided)

        Returns:
            Purchase entity instance
        """
        unit_price = Decimal(unit_price)
        amount = unit_price * quantity
        now = datetime.now(timezone.utc)
        return cls(
            id=purchase_id or origin.new_id(),
            product_id=product_id,
            owner_id=owner_id,
            status=PurchaseStatus.APPROVED if amount == 0 else PurchaseStatus.PENDING,
            amount=amount,
            unit_price=unit_price,
            quantity=quantity,
            currency=currency,
            payer_email=Email(payer_email).value,
            payer_name=payer_name or None,
            payer_document=payer_document or None,
            processor_ref=processor_ref,
            raw_response=None,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_paid(self) -> bool:
        """True if money has to move for this purchase."""
        return self.amount > 0

    @property
    def is_approved(self) -> bool:
        """True once the processor confirmed capture."""
        return self.status == PurchaseStatus.APPROVED

    def with_status(self, status: PurchaseStatus, raw_response: Optional[str] = None) -> "Purchase":
        """
        Create a new Purchase instance with a different status.

        Args:
            status: New canonical status
            raw_response: Processor payload that reported the status

        Returns:
            New Purchase instance
        """
        return replace(
            self,
            status=status,
            raw_response=raw_response if raw_response is not None else self.raw_response,
            updated_at=datetime.now(timezone.utc),
        )
