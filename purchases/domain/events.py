"""
Purchase domain events.

Domain events represent something that happened in the purchase domain.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent


class PurchaseCreated(DomainEvent):
    """Event raised when a purchase is recorded in the ledger."""

    def __init__(
        self,
        purchase_id: str,
        product_id: uuid.UUID,
        status: str,
        amount: Decimal,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize PurchaseCreated event.

        Args:
            purchase_id: Purchase id
            product_id: Product UUID
            status: Initial canonical status
            amount: Purchase amount
            occurred_at: When the event occurred
        """
        super().__init__(aggregate_id=purchase_id, occurred_at=occurred_at)
        self.purchase_id = purchase_id
        self.product_id = product_id
        self.status = status
        self.amount = amount


class PurchaseStatusChanged(DomainEvent):
    """Event raised when the provisioning coordinator changes a purchase status."""

    def __init__(
        self,
        purchase_id: str,
        old_status: str,
        new_status: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize PurchaseStatusChanged event.

        Args:
            purchase_id: Purchase id
            old_status: Previous canonical status
            new_status: New canonical status
            occurred_at: When the event occurred
        """
        super().__init__(aggregate_id=purchase_id, occurred_at=occurred_at)
        self.purchase_id = purchase_id
        self.old_status = old_status
        self.new_status = new_status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(old_status=self.old_status, new_status=self.new_status)
        return data


class PurchaseApproved(DomainEvent):
    """
    Event raised after an approved purchase had its licenses materialized.

    Carries everything the invoice and email collaborators need, so that
    handlers never have to read the ledger again.
    """

    def __init__(
        self,
        purchase_id: str,
        product_id: uuid.UUID,
        product_name: str,
        amount: Decimal,
        payer_email: str,
        product_version: Optional[str] = None,
        payer_name: Optional[str] = None,
        payer_document: Optional[str] = None,
        license_key: Optional[str] = None,
        download_reference: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id=purchase_id, occurred_at=occurred_at)
        self.purchase_id = purchase_id
        self.product_id = product_id
        self.product_name = product_name
        self.product_version = product_version
        self.amount = amount
        self.payer_email = payer_email
        self.payer_name = payer_name
        self.payer_document = payer_document
        self.license_key = license_key
        self.download_reference = download_reference

    @property
    def is_paid(self) -> bool:
        return self.amount > 0

    def invoice_payload(self) -> Dict[str, Any]:
        """Fields for the invoice service."""
        return {
            "purchase_id": self.purchase_id,
            "product_id": str(self.product_id),
            "product_name": self.product_name,
            "amount": str(self.amount),
            "payer_email": self.payer_email,
            "payer_name": self.payer_name,
            "payer_document": self.payer_document,
        }

    def confirmation_payload(self) -> Dict[str, Any]:
        """Fields for the confirmation email."""
        return {
            "recipient": self.payer_email,
            "product_name": self.product_name,
            "product_version": self.product_version,
            "purchase_id": self.purchase_id,
            "amount": str(self.amount),
            "download_reference": self.download_reference,
            "license_key": self.license_key,
        }


class GuestAccountMerged(DomainEvent):
    """Event raised when a guest identity is merged into a registered account."""

    def __init__(
        self,
        guest_id: int,
        account_id: int,
        purchases_moved: int,
        licenses_moved: int,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id=str(account_id), occurred_at=occurred_at)
        self.guest_id = guest_id
        self.account_id = account_id
        self.purchases_moved = purchases_moved
        self.licenses_moved = licenses_moved
