"""
Purchase DTOs for API responses.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


@dataclass
class PurchaseDTO:
    """DTO for purchase information."""

    id: str
    product_id: uuid.UUID
    status: str
    quantity: int
    amount: Decimal
    currency: str
    payer_email: str
    processor_ref: Optional[str]
    created_at: datetime


@dataclass
class ProvisioningResultDTO:
    """Outcome of applying a completion signal to a purchase."""

    processed: bool
    changed: bool = False
    purchase_id: Optional[str] = None
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    reason: Optional[str] = None
    licenses_created: int = 0


@dataclass
class CheckoutResultDTO:
    """DTO for hosted checkout response."""

    purchase_id: str
    status: str
    preference_id: Optional[str] = None
    init_point: Optional[str] = None
    sandbox_init_point: Optional[str] = None
    license_key: Optional[str] = None


@dataclass
class DirectChargeResultDTO:
    """DTO for direct charge response."""

    purchase_id: str
    status: str
    processor_payment_id: Optional[str] = None
    status_detail: Optional[str] = None
    license_key: Optional[str] = None
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    ticket_url: Optional[str] = None


@dataclass
class PurchaseStatusDTO:
    """DTO for purchase status lookup."""

    status: str
    purchase_id: Optional[str] = None
    payer_email: Optional[str] = None
    download_url: Optional[str] = None


@dataclass
class PurchaseListItemDTO:
    """DTO for one purchase in a buyer's history."""

    purchase_id: str
    product_id: uuid.UUID
    product_name: str
    quantity: int
    amount: Decimal
    currency: str
    status: str
    download_url: Optional[str]
    created_at: datetime


@dataclass
class PurchaseListDTO:
    """DTO for a buyer's purchase history."""

    email: str
    purchases: List[PurchaseListItemDTO]


@dataclass
class DownloadDTO:
    """DTO for a download request."""

    product_id: uuid.UUID
    download_url: str
    download_count: int


@dataclass
class MergeResultDTO:
    """DTO for guest account merge."""

    guest_id: int
    account_id: int
    purchases_moved: int
    licenses_moved: int
