"""
License DTOs for API responses.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass
class LicenseDTO:
    """DTO for license information."""

    id: int
    product_id: uuid.UUID
    product_name: str
    license_key: str
    hardware_id: Optional[str]
    activated_at: Optional[datetime]
    created_at: datetime


@dataclass
class LicenseListDTO:
    """DTO for the licenses held by an email."""

    email: str
    licenses: List[LicenseDTO]


@dataclass
class ReleaseResultDTO:
    """DTO for release device response."""

    license_id: int
    released_hardware_id: Optional[str]
    message: str
