"""
Unit tests for Purchase domain entity.
"""

import uuid
from decimal import Decimal

import pytest

from core.domain.exceptions import InvalidPurchaseError
from purchases.domain.purchase import (
    KNOWN_PROCESSOR_STATUSES,
    Purchase,
    PurchaseOrigin,
    PurchaseStatus,
)


class TestPurchaseEntity:
    """Tests for Purchase domain entity."""

    def test_create_paid_purchase(self):
        """Test a paid purchase starts pending."""
        product_id = uuid.uuid4()

        purchase = Purchase.create(
            product_id=product_id,
            quantity=3,
            unit_price=Decimal("19.90"),
            payer_email="Buyer@Example.com",
        )

        assert purchase.product_id == product_id
        assert purchase.status == PurchaseStatus.PENDING
        assert purchase.amount == Decimal("59.70")
        assert purchase.payer_email == "buyer@example.com"
        assert purchase.is_paid is True
        assert purchase.is_approved is False
        assert purchase.id.startswith("PAY-")

    def test_create_free_purchase_is_approved(self):
        """Test a zero-amount purchase is born approved."""
        purchase = Purchase.create(
            product_id=uuid.uuid4(),
            quantity=2,
            unit_price=Decimal("0"),
            payer_email="buyer@example.com",
            origin=PurchaseOrigin.FREE,
        )

        assert purchase.status == PurchaseStatus.APPROVED
        assert purchase.amount == Decimal("0")
        assert purchase.is_paid is False
        assert purchase.id.startswith("FREE-")

    def test_direct_charge_prefix(self):
        """Test purchase ids carry the origin prefix."""
        purchase = Purchase.create(
            product_id=uuid.uuid4(),
            quantity=1,
            unit_price=Decimal("10"),
            payer_email="buyer@example.com",
            origin=PurchaseOrigin.DIRECT_CHARGE,
        )

        assert purchase.id.startswith("DIRECT-")

    @pytest.mark.parametrize("quantity", [0, 11, -1])
    def test_quantity_out_of_range(self, quantity):
        """Test quantity must be between 1 and 10."""
        with pytest.raises(InvalidPurchaseError, match="Quantity"):
            Purchase.create(
                product_id=uuid.uuid4(),
                quantity=quantity,
                unit_price=Decimal("10"),
                payer_email="buyer@example.com",
            )

    def test_negative_price(self):
        """Test unit price cannot be negative."""
        with pytest.raises(InvalidPurchaseError, match="negative"):
            Purchase.create(
                product_id=uuid.uuid4(),
                quantity=1,
                unit_price=Decimal("-1"),
                payer_email="buyer@example.com",
            )

    def test_with_status(self):
        """Test status change keeps the payload when none is given."""
        purchase = Purchase.create(
            product_id=uuid.uuid4(),
            quantity=1,
            unit_price=Decimal("10"),
            payer_email="buyer@example.com",
        )

        approved = purchase.with_status(PurchaseStatus.APPROVED, raw_response='{"id": "1"}')
        refunded = approved.with_status(PurchaseStatus.REFUNDED)

        assert approved.is_approved is True
        assert refunded.status == PurchaseStatus.REFUNDED
        assert refunded.raw_response == '{"id": "1"}'
        assert purchase.status == PurchaseStatus.PENDING


class TestProcessorStatusMapping:
    """Tests for folding processor statuses onto canonical ones."""

    @pytest.mark.parametrize(
        "native,expected",
        [
            ("approved", PurchaseStatus.APPROVED),
            ("pending", PurchaseStatus.PENDING),
            ("authorized", PurchaseStatus.PENDING),
            ("in_process", PurchaseStatus.PENDING),
            ("in_mediation", PurchaseStatus.PENDING),
            ("rejected", PurchaseStatus.REJECTED),
            ("cancelled", PurchaseStatus.CANCELLED),
            ("refunded", PurchaseStatus.REFUNDED),
            ("charged_back", PurchaseStatus.REFUNDED),
        ],
    )
    def test_known_statuses(self, native, expected):
        """Test every documented processor status."""
        assert PurchaseStatus.from_processor(native) == expected

    @pytest.mark.parametrize("native", [None, "", "something_new", "expired"])
    def test_unknown_statuses_are_pending(self, native):
        """Test anything unrecognized maps to pending."""
        assert PurchaseStatus.from_processor(native) == PurchaseStatus.PENDING

    def test_mapping_ignores_case_and_whitespace(self):
        """Test native values are normalized before lookup."""
        assert PurchaseStatus.from_processor(" Approved ") == PurchaseStatus.APPROVED

    def test_mapping_is_total(self):
        """Test every known status maps to a canonical status."""
        for native in KNOWN_PROCESSOR_STATUSES:
            assert isinstance(PurchaseStatus.from_processor(native), PurchaseStatus)
