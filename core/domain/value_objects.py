"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass

HARDWARE_ID_MAX_LENGTH = 64


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object with validation.

    Addresses are stored trimmed and lower-cased so that a guest purchase
    and a later claim with different capitalisation resolve to one buyer.
    """

    value: str

    def __post_init__(self):
        """Validate and normalize email format."""
        if not self.value or "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value}")
        object.__setattr__(self, "value", self.value.strip().lower())

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


@dataclass(frozen=True)
class ProductSlug(ValueObject):
    """Product slug value object."""

    value: str

    def __post_init__(self):
        """Validate slug format."""
        if not self.value:
            raise ValueError("Product slug cannot be empty")
        if not self.value.replace("-", "").replace("_", "").isalnum():
            raise ValueError(f"Invalid product slug format: {self.value}")

    def __str__(self) -> str:
        """Return slug as string."""
        return self.value


@dataclass(frozen=True)
class HardwareId(ValueObject):
    """Caller-supplied device identifier.

    The identifier is trusted as-is; only emptiness and length are checked.
    """

    value: str

    def __post_init__(self):
        """Validate hardware identifier."""
        if not self.value or len(self.value.strip()) == 0:
            raise ValueError("Hardware identifier cannot be empty")
        if len(self.value) > HARDWARE_ID_MAX_LENGTH:
            raise ValueError("Hardware identifier too long")

    def __str__(self) -> str:
        """Return identifier as string."""
        return self.value
