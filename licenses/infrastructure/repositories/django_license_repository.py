"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from core.domain.exceptions import (
    DeviceConflictError,
    LicenseNotFoundError,
    ProvisioningConflictError,
)
from licenses.domain.license import License
from licenses.domain.license_key import generate_license_key
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository

UNBOUND = Q(hardware_id__isnull=True) | Q(hardware_id="")


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Implements repository interface

    Writes that can hit a unique constraint run in their own atomic
    block so a violation never poisons an enclosing transaction.
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            product_id=model.product_id,
            email=model.email,
            owner_id=model.owner_id,
            hardware_id=model.hardware_id or None,
            license_key=model.license_key,
            activated_at=model.activated_at,
            purchase_id=model.purchase_id,
            seat_index=model.seat_index,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, license: License) -> LicenseModel:
        """
        Convert domain entity to Django model.

        Args:
            license: License domain entity

        Returns:
            Django License model (unsaved when the entity is new)
        """
        if license.id is not None:
            try:
                model = LicenseModel.objects.get(id=license.id)
            except LicenseModel.DoesNotExist:
                raise LicenseNotFoundError(f"License {license.id} not found")
            model.owner_id = license.owner_id
            model.hardware_id = license.hardware_id
            model.activated_at = license.activated_at
            return model
        return LicenseModel(
            product_id=license.product_id,
            email=license.email,
            owner_id=license.owner_id,
            hardware_id=license.hardware_id,
            license_key=license.license_key,
            activated_at=license.activated_at,
            purchase_id=license.purchase_id,
            seat_index=license.seat_index,
        )

    @sync_to_async
    def save(self, license: License) -> License:
        """
        Save a license entity.

        Args:
            license: License entity to save

        Returns:
            Saved license entity
        """
        model = self._to_model(license)
        try:
            with transaction.atomic():
                model.save()
        except IntegrityError as e:
            raise DeviceConflictError() from e
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, license_id: int) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License id

        Returns:
            License entity or None if not found
        """
        try:
            model = LicenseModel.objects.get(id=license_id)
            return self._to_domain(model)
        except LicenseModel.DoesNotExist:
            return None

    @sync_to_async
    def find_bound_exact(
        self, product_id: uuid.UUID, email: str, hardware_id: str
    ) -> Optional[License]:
        model = LicenseModel.objects.filter(
            product_id=product_id, email=email, hardware_id=hardware_id
        ).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_unbound_slot(self, product_id: uuid.UUID, email: str) -> Optional[License]:
        model = (
            LicenseModel.objects.filter(UNBOUND, product_id=product_id, email=email)
            .order_by("created_at", "id")
            .first()
        )
        return self._to_domain(model) if model else None

    @sync_to_async
    def bind(
        self, license_id: int, hardware_id: str, only_if_unbound: bool = False
    ) -> Optional[License]:
        """
        Bind a license to a device.

        Args:
            license_id: License id
            hardware_id: Device identifier
            only_if_unbound: Only write if the slot is still free

        Returns:
            Updated License, or None if the slot was taken first
        """
        now = timezone.now()
        queryset = LicenseModel.objects.filter(id=license_id)
        if only_if_unbound:
            queryset = queryset.filter(UNBOUND)
        try:
            with transaction.atomic():
                updated = queryset.update(
                    hardware_id=hardware_id, activated_at=now, updated_at=now
                )
        except IntegrityError as e:
            raise DeviceConflictError() from e

        if not updated:
            if not LicenseModel.objects.filter(id=license_id).exists():
                raise LicenseNotFoundError(f"License {license_id} not found")
            return None
        return self._to_domain(LicenseModel.objects.get(id=license_id))

    @sync_to_async
    def unbind(self, license_id: int) -> License:
        """
        Free a license's slot.

        Args:
            license_id: License id

        Returns:
            Updated License entity
        """
        updated = LicenseModel.objects.filter(id=license_id).update(
            hardware_id=None, activated_at=None, updated_at=timezone.now()
        )
        if not updated:
            raise LicenseNotFoundError(f"License {license_id} not found")
        return self._to_domain(LicenseModel.objects.get(id=license_id))

    @sync_to_async
    def count_bound(self, product_id: uuid.UUID, email: str) -> int:
        return (
            LicenseModel.objects.filter(product_id=product_id, email=email)
            .exclude(UNBOUND)
            .count()
        )

    @sync_to_async
    def find_by_email(self, email: str) -> List[License]:
        models = LicenseModel.objects.filter(email=email).order_by("-created_at", "-id")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def find_by_purchase(self, purchase_id: str) -> List[License]:
        models = LicenseModel.objects.filter(purchase_id=purchase_id).order_by("seat_index")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def exists_for_purchase(self, purchase_id: str) -> bool:
        return LicenseModel.objects.filter(purchase_id=purchase_id).exists()

    @sync_to_async
    def create_seats(
        self,
        purchase_id: str,
        product_id: uuid.UUID,
        email: str,
        quantity: int,
        owner_id: Optional[int] = None,
    ) -> List[License]:
        """
        Create one unbound License per purchased unit, in one transaction.

        Args:
            purchase_id: Purchase id
            product_id: Product UUID
            email: Holder email
            quantity: Number of seats
            owner_id: Optional account id of the holder

        Returns:
            The created License entities, by seat index
        """
        seats = [
            LicenseModel(
                product_id=product_id,
                email=email,
                owner_id=owner_id,
                license_key=generate_license_key(),
                purchase_id=purchase_id,
                seat_index=index,
            )
            for index in range(quantity)
        ]
        try:
            with transaction.atomic():
                for seat in seats:
                    seat.save()
        except IntegrityError as e:
            raise ProvisioningConflictError(
                f"Purchase {purchase_id} is already provisioned"
            ) from e
        return [self._to_domain(seat) for seat in seats]
