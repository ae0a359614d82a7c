"""
VerifyDeviceQuery.

Query asking whether a device holds a license for a product.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class VerifyDeviceQuery:
    """Query to verify a product on a device."""

    product_id: uuid.UUID
    email: str
    hardware_id: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None
