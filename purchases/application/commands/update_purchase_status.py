"""
UpdatePurchaseStatusCommand.

Staff override of a purchase's canonical status.
"""

from dataclasses import dataclass


@dataclass
class UpdatePurchaseStatusCommand:
    """Command to set a purchase status by hand."""

    purchase_id: str
    status: str
