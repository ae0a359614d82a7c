"""
Django implementation of PurchaseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db.models import Sum
from django.utils import timezone

from core.domain.exceptions import PurchaseNotFoundError
from purchases.domain.purchase import Purchase, PurchaseStatus
from purchases.infrastructure.models import Purchase as PurchaseModel
from purchases.ports.purchase_repository import PurchaseRepository


class DjangoPurchaseRepository(PurchaseRepository):
    """
    Django ORM implementation of PurchaseRepository.

    Status writes go through ``transition_status``, which can be made
    conditional on the previously read status.
    """

    def _to_domain(self, model: PurchaseModel) -> Purchase:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Purchase model

        Returns:
            Purchase domain entity
        """
        return Purchase(
            id=model.id,
            product_id=model.product_id,
            owner_id=model.owner_id,
            status=PurchaseStatus(model.status),
            amount=model.amount,
            unit_price=model.unit_price,
            quantity=model.quantity,
            currency=model.currency,
            payer_email=model.payer_email,
            payer_name=model.payer_name,
            payer_document=model.payer_document,
            processor_ref=model.processor_ref,
            raw_response=model.raw_response,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, purchase: Purchase) -> PurchaseModel:
        """
        Convert domain entity to Django model.

        Args:
            purchase: Purchase domain entity

        Returns:
            Django Purchase model
        """
        model, created = PurchaseModel.objects.get_or_create(
            id=purchase.id,
            defaults={
                "product_id": purchase.product_id,
                "owner_id": purchase.owner_id,
                "status": purchase.status.value,
                "amount": purchase.amount,
                "unit_price": purchase.unit_price,
                "quantity": purchase.quantity,
                "currency": purchase.currency,
                "payer_email": purchase.payer_email,
                "payer_name": purchase.payer_name,
                "payer_document": purchase.payer_document,
                "processor_ref": purchase.processor_ref,
                "raw_response": purchase.raw_response,
            },
        )
        if not created:
            model.owner_id = purchase.owner_id
            model.payer_name = purchase.payer_name
            model.payer_document = purchase.payer_document
            model.processor_ref = purchase.processor_ref
        return model

    @sync_to_async
    def save(self, purchase: Purchase) -> Purchase:
        """
        Save a purchase entity.

        Status changes of an existing purchase are not written here;
        they go through transition_status.

        Args:
            purchase: Purchase entity to save

        Returns:
            Saved purchase entity
        """
        model = self._to_model(purchase)
        model.save()
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, purchase_id: str) -> Optional[Purchase]:
        """
        Find a purchase by its internal id.

        Args:
            purchase_id: Purchase id

        Returns:
            Purchase entity or None if not found
        """
        try:
            return self._to_domain(PurchaseModel.objects.get(id=purchase_id))
        except PurchaseModel.DoesNotExist:
            return None

    @sync_to_async
    def find_by_processor_ref(self, processor_ref: str) -> Optional[Purchase]:
        """
        Find a purchase by the processor's preference or charge id.

        Args:
            processor_ref: Processor reference

        Returns:
            Purchase entity or None if not found
        """
        model = PurchaseModel.objects.filter(processor_ref=processor_ref).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def attach_processor_ref(self, purchase_id: str, processor_ref: str) -> Purchase:
        """
        Record the processor reference on a purchase.

        Args:
            purchase_id: Purchase id
            processor_ref: Processor reference

        Returns:
            Updated purchase entity
        """
        updated = PurchaseModel.objects.filter(id=purchase_id).update(
            processor_ref=processor_ref, updated_at=timezone.now()
        )
        if not updated:
            raise PurchaseNotFoundError(f"Purchase {purchase_id} not found")
        return self._to_domain(PurchaseModel.objects.get(id=purchase_id))

    @sync_to_async
    def transition_status(
        self,
        purchase_id: str,
        new_status: PurchaseStatus,
        raw_payload: Optional[str] = None,
        expected_status: Optional[PurchaseStatus] = None,
    ) -> Optional[Purchase]:
        """
        Persist a new status and the raw processor payload.

        Args:
            purchase_id: Purchase id
            new_status: New canonical status
            raw_payload: Opaque processor payload
            expected_status: Status the caller read before deciding

        Returns:
            Updated purchase entity, or None if another writer changed it first
        """
        queryset = PurchaseModel.objects.filter(id=purchase_id)
        if not queryset.exists():
            raise PurchaseNotFoundError(f"Purchase {purchase_id} not found")
        if expected_status is not None:
            queryset = queryset.filter(status=expected_status.value)

        updates = {"status": new_status.value, "updated_at": timezone.now()}
        if raw_payload is not None:
            updates["raw_response"] = raw_payload

        if queryset.update(**updates) == 0:
            return None
        return self._to_domain(PurchaseModel.objects.get(id=purchase_id))

    @sync_to_async
    def count_approved(self, product_id: uuid.UUID, email: str) -> int:
        """
        Count approved purchases for a product and email.

        Args:
            product_id: Product UUID
            email: Payer email

        Returns:
            Number of approved purchases
        """
        return PurchaseModel.objects.filter(
            product_id=product_id,
            payer_email=email,
            status=PurchaseStatus.APPROVED.value,
        ).count()

    @sync_to_async
    def sum_approved_units(self, product_id: uuid.UUID, email: str) -> int:
        """
        Sum the quantity of approved purchases for a product and email.

        Args:
            product_id: Product UUID
            email: Payer email

        Returns:
            Number of approved seats
        """
        result = PurchaseModel.objects.filter(
            product_id=product_id,
            payer_email=email,
            status=PurchaseStatus.APPROVED.value,
        ).aggregate(units=Sum("quantity"))
        return result["units"] or 0

    @sync_to_async
    def find_by_email(
        self,
        email: str,
        product_id: Optional[uuid.UUID] = None,
        status: Optional[PurchaseStatus] = None,
    ) -> List[Purchase]:
        """
        List purchases of a payer, newest first.

        Args:
            email: Payer email
            product_id: Optional product filter
            status: Optional status filter

        Returns:
            List of Purchase entities
        """
        queryset = PurchaseModel.objects.filter(payer_email=email)
        if product_id is not None:
            queryset = queryset.filter(product_id=product_id)
        if status is not None:
            queryset = queryset.filter(status=status.value)
        return [self._to_domain(model) for model in queryset.order_by("-created_at")]

    @sync_to_async
    def purge_by_prefix(self, prefix: str) -> int:
        """
        Delete purchases whose id starts with a prefix.

        Licenses materialized for them are removed with them.

        Args:
            prefix: Id prefix

        Returns:
            Number of purchases deleted
        """
        if not prefix:
            raise ValueError("Prefix cannot be empty")
        queryset = PurchaseModel.objects.filter(id__startswith=prefix)
        count = queryset.count()
        queryset.delete()
        return count
