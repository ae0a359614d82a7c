"""
Activation DTOs for API responses.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class ActivationResultDTO:
    """DTO for activate device response."""

    license_id: int
    license_key: str
    product_name: str
    activated_at: Optional[datetime]
    message: str


@dataclass
class VerificationResultDTO:
    """DTO for verify device response."""

    valid: bool
    license_key: Optional[str] = None
    activated_at: Optional[datetime] = None
    product_name: Optional[str] = None
