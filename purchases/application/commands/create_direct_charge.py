"""
CreateDirectChargeCommand.

Command to charge the buyer server-side (card token, PIX, boleto).
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class CreateDirectChargeCommand:
    """Command to create a direct charge at the payment processor."""

    product_id: uuid.UUID
    payer_email: str
    payment_method_id: str
    quantity: int = 1
    token: Optional[str] = None
    installments: Optional[int] = None
    issuer_id: Optional[str] = None
    payer_first_name: Optional[str] = None
    payer_last_name: Optional[str] = None
    identification_type: Optional[str] = None
    identification_number: Optional[str] = None
    description: Optional[str] = None
    idempotency_key: Optional[str] = None
    device_id: Optional[str] = None
    tracking_id: Optional[str] = None
    ip_address: Optional[str] = None
    owner_id: Optional[int] = None
