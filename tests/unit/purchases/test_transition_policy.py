"""
Unit tests for StatusTransitionPolicy domain service.
"""

import pytest

from purchases.domain.purchase import PurchaseStatus
from purchases.domain.services import REASON_STALE, REASON_UNCHANGED, StatusTransitionPolicy


class TestStatusTransitionPolicy:
    """Tests for StatusTransitionPolicy."""

    def test_pending_to_approved_materializes(self):
        """Test the first approval creates seats."""
        decision = StatusTransitionPolicy.evaluate(PurchaseStatus.PENDING, PurchaseStatus.APPROVED)

        assert decision.apply is True
        assert decision.materialize is True

    def test_rejected_to_approved_materializes(self):
        """Test a retried payment can still be approved."""
        decision = StatusTransitionPolicy.evaluate(PurchaseStatus.REJECTED, PurchaseStatus.APPROVED)

        assert decision.apply is True
        assert decision.materialize is True

    def test_cancelled_to_approved_materializes(self):
        """Test paying again after a cancelled payment still creates seats."""
        decision = StatusTransitionPolicy.evaluate(PurchaseStatus.CANCELLED, PurchaseStatus.APPROVED)

        assert decision.apply is True
        assert decision.materialize is True

    @pytest.mark.parametrize("status", list(PurchaseStatus))
    def test_same_status_is_noop(self, status):
        """Test repeating the stored status changes nothing."""
        decision = StatusTransitionPolicy.evaluate(status, status)

        assert decision.apply is False
        assert decision.materialize is False
        assert decision.reason == REASON_UNCHANGED

    @pytest.mark.parametrize(
        "current,proposed",
        [
            (PurchaseStatus.APPROVED, PurchaseStatus.PENDING),
            (PurchaseStatus.APPROVED, PurchaseStatus.REJECTED),
            (PurchaseStatus.REFUNDED, PurchaseStatus.APPROVED),
            (PurchaseStatus.CANCELLED, PurchaseStatus.PENDING),
            (PurchaseStatus.REJECTED, PurchaseStatus.PENDING),
            (PurchaseStatus.APPROVED, PurchaseStatus.CANCELLED),
        ],
    )
    def test_backward_transitions_are_stale(self, current, proposed):
        """Test a late signal never moves a purchase back."""
        decision = StatusTransitionPolicy.evaluate(current, proposed)

        assert decision.apply is False
        assert decision.reason == REASON_STALE

    def test_approved_to_refunded_applies_without_seats(self):
        """Test a refund is recorded but creates nothing."""
        decision = StatusTransitionPolicy.evaluate(PurchaseStatus.APPROVED, PurchaseStatus.REFUNDED)

        assert decision.apply is True
        assert decision.materialize is False

    def test_pending_to_rejected_applies(self):
        """Test a rejection is recorded."""
        decision = StatusTransitionPolicy.evaluate(PurchaseStatus.PENDING, PurchaseStatus.REJECTED)

        assert decision.apply is True
        assert decision.materialize is False
