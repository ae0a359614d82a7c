"""
CreatePurchaseCommand.

Command to start a hosted checkout for a product.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class CreatePurchaseCommand:
    """
    Command to start a hosted checkout.

    Free products are approved and provisioned immediately; paid ones get
    a processor preference the buyer is redirected to.
    """

    product_id: uuid.UUID
    payer_email: str
    payer_name: Optional[str] = None
    quantity: int = 1
    owner_id: Optional[int] = None
