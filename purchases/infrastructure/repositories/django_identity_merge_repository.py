"""
Django implementation of IdentityMergeRepository port.
"""
import logging
from typing import Tuple

from asgiref.sync import sync_to_async
from django.contrib.auth import get_user_model
from django.db import transaction

from core.domain.exceptions import AccountNotFoundError
from licenses.infrastructure.models import License as LicenseModel
from purchases.infrastructure.models import Purchase as PurchaseModel
from purchases.ports.identity_merge_repository import IdentityMergeRepository

logger = logging.getLogger(__name__)


class DjangoIdentityMergeRepository(IdentityMergeRepository):
    """Merges guest accounts using Django's auth user model."""

    @sync_to_async
    def account_exists(self, account_id: int) -> bool:
        return get_user_model().objects.filter(pk=account_id).exists()

    @sync_to_async
    def merge(self, guest_id: int, account_id: int) -> Tuple[int, int]:
        User = get_user_model()
        with transaction.atomic():
            guest = User.objects.select_for_update().filter(pk=guest_id).first()
            if guest is None:
                raise AccountNotFoundError(f"Guest account {guest_id} not found")

            purchases_moved = PurchaseModel.objects.filter(owner_id=guest_id).update(
                owner_id=account_id
            )
            licenses_moved = LicenseModel.objects.filter(owner_id=guest_id).update(
                owner_id=account_id
            )

            guest.is_active = False
            guest.save(update_fields=["is_active"])

        logger.info(
            "Merged guest %s into account %s (%d purchases, %d licenses)",
            guest_id,
            account_id,
            purchases_moved,
            licenses_moved,
        )
        return purchases_moved, licenses_moved
