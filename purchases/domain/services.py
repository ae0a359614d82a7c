"""
Purchase domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""

from dataclasses import dataclass
from typing import Optional

from purchases.domain.purchase import PurchaseStatus

REASON_UNCHANGED = "status unchanged"
REASON_STALE = "stale transition ignored"


@dataclass(frozen=True)
class TransitionDecision:
    """Outcome of evaluating a proposed status change."""

    apply: bool
    materialize: bool = False
    reason: Optional[str] = None


class StatusTransitionPolicy:
    """Decides whether a completion signal may change a purchase."""

    @staticmethod
    def evaluate(current: PurchaseStatus, proposed: PurchaseStatus) -> TransitionDecision:
        """
        Evaluate a proposed status change.

        A change to the status already stored is a no-op. A change to a
        status earlier in the lifecycle (lower rank) is stale and ignored,
        so a delayed ``pending`` never overwrites an ``approved`` purchase.

        Args:
            current: Stored status
            proposed: Status reported by the completion signal

        Returns:
            TransitionDecision
        """
        if proposed == current:
            return TransitionDecision(apply=False, reason=REASON_UNCHANGED)
        if proposed.rank < current.rank:
            return TransitionDecision(apply=False, reason=REASON_STALE)
        return TransitionDecision(
            apply=True,
            materialize=StatusTransitionPolicy.materializes(current, proposed),
        )

    @staticmethod
    def materializes(previous: PurchaseStatus, new: PurchaseStatus) -> bool:
        """Licenses are created only on the first move into approved."""
        return new == PurchaseStatus.APPROVED and previous != PurchaseStatus.APPROVED
