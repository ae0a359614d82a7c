"""
MergeGuestAccountCommand.
"""

from dataclasses import dataclass


@dataclass
class MergeGuestAccountCommand:
    """Command to move a guest's purchases and licenses to a registered account."""

    guest_id: int
    account_id: int
