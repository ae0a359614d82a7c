"""
GetPurchaseStatusQuery.

Query used by the checkout return page to poll a purchase.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class GetPurchaseStatusQuery:
    """
    Query for a purchase's status.

    Lookup order: purchase id, then processor reference, then the latest
    approved or pending purchase of the email for the product.
    """

    product_id: uuid.UUID
    purchase_id: Optional[str] = None
    processor_ref: Optional[str] = None
    email: Optional[str] = None
