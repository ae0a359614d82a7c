"""
Activation log entry domain entity.

Every activation, verification and release attempt leaves exactly one
entry, whether it succeeded or not. Entries are never updated.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from core.domain.value_objects import HARDWARE_ID_MAX_LENGTH


class ActivationAction(Enum):
    """What the caller tried to do."""

    ACTIVATE = "activate"
    VERIFY = "verify"
    RELEASE = "release"

    def __str__(self) -> str:
        return self.value


class ActivationOutcome(Enum):
    """How the attempt ended."""

    SUCCESS = "success"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ActivationLogEntry:
    """
    Activation log entry domain entity.

    ``id`` is assigned by the store and is None until the entry is appended.
    """

    id: Optional[int]
    product_id: Optional[uuid.UUID]
    email: str
    hardware_id: str
    license_id: Optional[int]
    action: ActivationAction
    status: ActivationOutcome
    message: str
    ip: Optional[str]
    user_agent: Optional[str]
    created_at: datetime

    @classmethod
    def create(
        cls,
        product_id: Optional[uuid.UUID],
        email: str,
        hardware_id: str,
        action: ActivationAction,
        status: ActivationOutcome,
        message: str,
        license_id: Optional[int] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> "ActivationLogEntry":
        """
        Create a new ActivationLogEntry.

        Args:
            product_id: Product UUID (None if the product does not exist)
            email: Caller email
            hardware_id: Caller device identifier
            action: Attempted action
            status: Outcome
            message: Human-readable outcome
            license_id: License involved, if any
            ip: Caller IP address
            user_agent: Caller user agent

        Returns:
            ActivationLogEntry instance
        """
        return cls(
            id=None,
            product_id=product_id,
            email=email[:254],
            hardware_id=hardware_id[:HARDWARE_ID_MAX_LENGTH],
            license_id=license_id,
            action=action,
            status=status,
            message=message,
            ip=ip,
            user_agent=(user_agent or "")[:255] or None,
            created_at=datetime.now(timezone.utc),
        )

    @property
    def succeeded(self) -> bool:
        return self.status == ActivationOutcome.SUCCESS
