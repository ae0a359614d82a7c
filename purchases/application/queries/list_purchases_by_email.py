"""
ListPurchasesByEmailQuery.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class ListPurchasesByEmailQuery:
    """Query for a buyer's approved purchases."""

    email: str
    product_id: Optional[uuid.UUID] = None
