"""
Unit tests for SlotAllocator domain service.
"""

import uuid
from dataclasses import replace
from typing import Dict, List, Optional

import pytest

from activations.domain.services import MAX_DEVICES_PER_LICENSE, SlotAllocator
from core.domain.exceptions import (
    DeviceConflictError,
    DeviceQuotaExceededError,
    NoEntitlementError,
)
from licenses.domain.license import License

EMAIL = "buyer@example.com"


class InMemoryLicenses:
    """Just enough of LicenseRepository for the allocator."""

    def __init__(self):
        self.rows: Dict[int, License] = {}
        self._next_id = 1
        self.steal_next_slot = False

    def add(self, license: License) -> License:
        saved = replace(license, id=self._next_id)
        self._next_id += 1
        self.rows[saved.id] = saved
        return saved

    async def save(self, license: License) -> License:
        if license.is_bound and await self.find_bound_exact(
            license.product_id, license.email, license.hardware_id
        ):
            raise DeviceConflictError()
        return self.add(license)

    async def find_bound_exact(self, product_id, email, hardware_id) -> Optional[License]:
        for row in self.rows.values():
            if (row.product_id, row.email, row.hardware_id) == (product_id, email, hardware_id):
                return row
        return None

    async def find_unbound_slot(self, product_id, email) -> Optional[License]:
        for row in sorted(self.rows.values(), key=lambda r: r.id):
            if row.product_id == product_id and row.email == email and not row.is_bound:
                return row
        return None

    async def bind(self, license_id, hardware_id, only_if_unbound=False) -> Optional[License]:
        if self.steal_next_slot:
            # Another device takes the slot between read and write
            self.steal_next_slot = False
            self.rows[license_id] = self.rows[license_id].bind("OTHER-DEVICE")
        row = self.rows[license_id]
        if only_if_unbound and row.is_bound:
            return None
        self.rows[license_id] = row.bind(hardware_id)
        return self.rows[license_id]

    async def count_bound(self, product_id, email) -> int:
        return sum(
            1
            for row in self.rows.values()
            if row.product_id == product_id and row.email == email and row.is_bound
        )

    def bound(self) -> List[License]:
        return [row for row in self.rows.values() if row.is_bound]


class InMemoryPurchases:
    """Approved purchase quantities for one product and email."""

    def __init__(self, *quantities: int):
        self.quantities = list(quantities)

    async def count_approved(self, product_id, email) -> int:
        return len(self.quantities)

    async def sum_approved_units(self, product_id, email) -> int:
        return sum(self.quantities)


@pytest.fixture
def product_id():
    return uuid.uuid4()


@pytest.fixture
def licenses():
    return InMemoryLicenses()


def _seats(licenses, product_id, count):
    for index in range(count):
        licenses.add(
            License.create(
                product_id=product_id, email=EMAIL, purchase_id="FREE-1", seat_index=index
            )
        )


class TestQuota:
    """Tests for the device quota."""

    @pytest.mark.parametrize("units,expected", [(0, 0), (1, 3), (2, 6), (10, 30)])
    def test_quota_for(self, units, expected):
        """Test three devices per approved seat."""
        assert SlotAllocator.quota_for(units) == expected
        assert MAX_DEVICES_PER_LICENSE == 3


@pytest.mark.asyncio
class TestSlotAllocator:
    """Tests for SlotAllocator.allocate."""

    async def test_binds_free_seat_first(self, licenses, product_id):
        """Test an unbound seat is used before creating a row."""
        _seats(licenses, product_id, 1)

        license, replay = await SlotAllocator.allocate(
            product_id, EMAIL, "PC-000001", licenses, InMemoryPurchases(1)
        )

        assert replay is False
        assert license.seat_index == 0
        assert license.hardware_id == "PC-000001"
        assert len(licenses.rows) == 1

    async def test_replay_returns_same_license(self, licenses, product_id):
        """Test activating the same device twice is idempotent."""
        _seats(licenses, product_id, 1)
        purchases = InMemoryPurchases(1)

        first, _ = await SlotAllocator.allocate(product_id, EMAIL, "PC-000001", licenses, purchases)
        second, replay = await SlotAllocator.allocate(
            product_id, EMAIL, "PC-000001", licenses, purchases
        )

        assert replay is True
        assert second.id == first.id
        assert second.license_key == first.license_key

    async def test_replay_allowed_when_quota_full(self, licenses, product_id):
        """Test a bound device can re-activate even at the limit."""
        purchases = InMemoryPurchases(1)
        for index in range(3):
            await SlotAllocator.allocate(product_id, EMAIL, f"PC-00000{index}", licenses, purchases)

        license, replay = await SlotAllocator.allocate(
            product_id, EMAIL, "PC-000000", licenses, purchases
        )

        assert replay is True
        assert license.hardware_id == "PC-000000"

    async def test_no_approved_purchase(self, licenses, product_id):
        """Test activation without an approved purchase is refused."""
        with pytest.raises(NoEntitlementError):
            await SlotAllocator.allocate(
                product_id, EMAIL, "PC-000001", licenses, InMemoryPurchases()
            )

    async def test_single_seat_allows_three_devices(self, licenses, product_id):
        """Test the fourth device on one seat is refused."""
        _seats(licenses, product_id, 1)
        purchases = InMemoryPurchases(1)

        for index in range(3):
            await SlotAllocator.allocate(product_id, EMAIL, f"PC-00000{index}", licenses, purchases)

        with pytest.raises(DeviceQuotaExceededError):
            await SlotAllocator.allocate(product_id, EMAIL, "PC-000009", licenses, purchases)

        assert len(licenses.bound()) == 3

    async def test_quota_sums_all_approved_purchases(self, licenses, product_id):
        """Test quota counts units across purchases."""
        purchases = InMemoryPurchases(1, 2)

        for index in range(9):
            await SlotAllocator.allocate(product_id, EMAIL, f"PC-00000{index}", licenses, purchases)

        with pytest.raises(DeviceQuotaExceededError):
            await SlotAllocator.allocate(product_id, EMAIL, "PC-000099", licenses, purchases)

    async def test_creates_bound_row_when_no_slot(self, licenses, product_id):
        """Test a bound license is created once every seat is taken."""
        _seats(licenses, product_id, 1)
        purchases = InMemoryPurchases(1)

        await SlotAllocator.allocate(product_id, EMAIL, "PC-000001", licenses, purchases)
        license, replay = await SlotAllocator.allocate(
            product_id, EMAIL, "PC-000002", licenses, purchases
        )

        assert replay is False
        assert license.purchase_id is None
        assert license.hardware_id == "PC-000002"
        assert len(licenses.rows) == 2

    async def test_lost_slot_race_moves_on(self, licenses, product_id):
        """Test a slot taken between read and write is not overwritten."""
        _seats(licenses, product_id, 2)
        licenses.steal_next_slot = True

        license, replay = await SlotAllocator.allocate(
            product_id, EMAIL, "PC-000001", licenses, InMemoryPurchases(2)
        )

        assert replay is False
        assert license.seat_index == 1
        assert {row.hardware_id for row in licenses.bound()} == {"OTHER-DEVICE", "PC-000001"}

    async def test_seats_of_other_email_not_used(self, licenses, product_id):
        """Test seats are scoped to the email."""
        licenses.add(License.create(product_id=product_id, email="other@example.com"))

        license, _ = await SlotAllocator.allocate(
            product_id, EMAIL, "PC-000001", licenses, InMemoryPurchases(1)
        )

        assert license.email == EMAIL
        assert len(licenses.rows) == 2
