"""
ReleaseDeviceCommand.

Staff command to free a license's slot so another device can take it.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ReleaseDeviceCommand:
    """Command to unbind the device of a license."""

    license_id: int
    actor: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
