"""
ActivateDeviceCommand.

Command to bind a device to one of the caller's license seats.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class ActivateDeviceCommand:
    """Command to activate a product on a device."""

    product_id: uuid.UUID
    email: str
    hardware_id: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    owner_id: Optional[int] = None
