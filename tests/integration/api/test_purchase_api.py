"""
Integration tests for Purchase API endpoints.
"""

import uuid

import pytest
from django.core import mail
from django.urls import reverse

from licenses.infrastructure.models import License
from purchases.domain.purchase import PurchaseStatus
from purchases.infrastructure.models import Purchase
from tests.conftest import signed_headers

EMAIL = "buyer@example.com"


def _webhook_meta(data_id, **kwargs):
    """Signed headers in the form the test client expects."""
    return {
        f"HTTP_{name.upper().replace('-', '_')}": value
        for name, value in signed_headers(data_id, **kwargs).items()
    }


def _notification(data_id):
    return {"type": "payment", "action": "payment.updated", "data": {"id": data_id}}


@pytest.mark.django_db
@pytest.mark.integration
class TestCheckoutAPI:
    """Integration tests for the checkout endpoint."""

    def test_free_checkout_provisions_immediately(self, api_client, fake_processor, free_product):
        """Test a free product is approved with its seats at once."""
        response = api_client.post(
            reverse("purchases:create-checkout", args=[free_product.id]),
            {"email": "Buyer@Example.com", "quantity": 2},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "approved"
        assert data["purchase_id"].startswith("FREE-")
        assert data["init_point"] is None
        assert License.objects.filter(purchase_id=data["purchase_id"]).count() == 2
        assert data["license_key"] == License.objects.get(
            purchase_id=data["purchase_id"], seat_index=0
        ).license_key
        assert fake_processor.preferences == []
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == [EMAIL]

    def test_paid_checkout_returns_processor_urls(self, api_client, fake_processor, paid_product):
        """Test a paid product gets a pending purchase and a preference."""
        response = api_client.post(
            reverse("purchases:create-checkout", args=[paid_product.id]),
            {"email": EMAIL, "name": "Ana Souza", "quantity": 3},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["purchase_id"].startswith("PAY-")
        assert data["init_point"].startswith("https://checkout.example.com/")
        assert data["license_key"] is None

        purchase = Purchase.objects.get(id=data["purchase_id"])
        assert purchase.processor_ref == data["preference_id"]
        assert purchase.quantity == 3
        assert License.objects.filter(purchase_id=purchase.id).count() == 0

        request = fake_processor.preferences[0]
        assert request.external_reference == purchase.id
        assert request.quantity == 3

    def test_checkout_unknown_product(self, api_client, fake_processor, db):
        """Test checkout of a missing product returns 404."""
        response = api_client.post(
            reverse("purchases:create-checkout", args=[uuid.uuid4()]),
            {"email": EMAIL},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"

    def test_checkout_quantity_out_of_range(self, api_client, fake_processor, paid_product):
        """Test quantity above ten is rejected."""
        response = api_client.post(
            reverse("purchases:create-checkout", args=[paid_product.id]),
            {"email": EMAIL, "quantity": 11},
            format="json",
        )

        assert response.status_code == 400
        assert "quantity" in response.json()["error"]["details"]

    def test_checkout_without_processor(self, api_client, monkeypatch, paid_product):
        """Test a paid checkout without a configured processor returns 503."""
        from api.v1.purchases import views

        monkeypatch.setattr(views, "_processor_client", None)

        response = api_client.post(
            reverse("purchases:create-checkout", args=[paid_product.id]),
            {"email": EMAIL},
            format="json",
        )

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "UPSTREAM_UNAVAILABLE"
        assert Purchase.objects.count() == 0


@pytest.mark.django_db
@pytest.mark.integration
class TestDirectChargeAPI:
    """Integration tests for the direct charge endpoint."""

    def _charge(self, api_client, product, **extra):
        payload = {
            "payer": {
                "email": EMAIL,
                "first_name": "Ana",
                "last_name": "Souza",
                "identification": {"type": "CPF", "number": "12345678909"},
            },
            "payment_method_id": "visa",
            "token": "card-token",
            "installments": 1,
            "quantity": 1,
        }
        payload.update(extra)
        payload = {key: value for key, value in payload.items() if value is not None}
        return api_client.post(
            reverse("purchases:create-direct-charge", args=[product.id]), payload, format="json"
        )

    def test_approved_charge_returns_key(self, api_client, fake_processor, paid_product):
        """Test an approved charge provisions and returns the first key."""
        response = self._charge(api_client, paid_product)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "approved"
        assert data["purchase_id"].startswith("DIRECT-")
        assert data["license_key"] == License.objects.get(
            purchase_id=data["purchase_id"]
        ).license_key

        purchase = Purchase.objects.get(id=data["purchase_id"])
        assert purchase.processor_ref == data["processor_payment_id"]
        assert purchase.payer_name == "Ana Souza"
        assert fake_processor.charges[0].idempotency_key == purchase.id

    def test_caller_idempotency_key_is_forwarded(self, api_client, fake_processor, paid_product):
        """Test the caller's idempotency key reaches the processor."""
        self._charge(api_client, paid_product, idempotency_key="order-77")

        assert fake_processor.charges[0].idempotency_key == "order-77"

    def test_pending_pix_charge(self, api_client, fake_processor, paid_product):
        """Test a pending PIX charge returns the QR code and no key."""
        fake_processor.charge_status = "pending"

        response = self._charge(api_client, paid_product, payment_method_id="pix", token=None)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["license_key"] is None
        assert data["qr_code"] == "00020126pix"
        assert data["ticket_url"] == "https://pix.example.com/ticket"
        assert License.objects.count() == 0

    def test_rejected_charge(self, api_client, fake_processor, paid_product):
        """Test a rejected charge is recorded without seats."""
        fake_processor.charge_status = "rejected"

        data = self._charge(api_client, paid_product).json()

        assert data["status"] == "rejected"
        assert Purchase.objects.get(id=data["purchase_id"]).status == "rejected"
        assert License.objects.count() == 0

    def test_webhook_after_direct_charge_creates_nothing(
        self, api_client, fake_processor, paid_product
    ):
        """Test the late webhook for an approved charge is a no-op."""
        data = self._charge(api_client, paid_product).json()

        response = api_client.post(
            reverse("purchases:payment-webhook"),
            _notification(data["processor_payment_id"]),
            format="json",
            **_webhook_meta(data["processor_payment_id"]),
        )

        assert response.status_code == 200
        assert response.json()["reason"] == "status unchanged"
        assert License.objects.filter(purchase_id=data["purchase_id"]).count() == 1

    def test_invalid_installments(self, api_client, fake_processor, paid_product):
        """Test installments outside the allowed range are rejected."""
        response = self._charge(api_client, paid_product, installments=12)

        assert response.status_code == 400
        assert "installments" in response.json()["error"]["details"]


@pytest.mark.django_db
@pytest.mark.integration
class TestWebhookAPI:
    """Integration tests for the payment webhook."""

    def test_invalid_signature_rejected(self, api_client, fake_processor, make_purchase, paid_product):
        """Test a badly signed delivery returns 401 and changes nothing."""
        purchase = make_purchase(paid_product, processor_ref="5001")
        fake_processor.add_payment("5001", "approved", external_reference=purchase.id)

        response = api_client.post(
            reverse("purchases:payment-webhook"),
            _notification("5001"),
            format="json",
            **_webhook_meta("5001", secret="wrong-secret"),
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_WEBHOOK_SIGNATURE"
        assert Purchase.objects.get(id=purchase.id).status == "pending"

    def test_missing_signature_rejected(self, api_client, fake_processor, db):
        """Test an unsigned delivery returns 401."""
        response = api_client.post(
            reverse("purchases:payment-webhook"), _notification("5001"), format="json"
        )

        assert response.status_code == 401

    def test_approved_payment_provisions(self, api_client, fake_processor, make_purchase, paid_product):
        """Test an approved payment moves the purchase and creates seats."""
        purchase = make_purchase(paid_product, quantity=2, processor_ref="pref-1")
        fake_processor.add_payment("5002", "approved", external_reference=purchase.id)

        response = api_client.post(
            reverse("purchases:payment-webhook"),
            _notification("5002"),
            format="json",
            **_webhook_meta("5002"),
        )

        assert response.status_code == 200
        assert response.json() == {"received": True, "processed": True, "reason": None}
        assert Purchase.objects.get(id=purchase.id).status == "approved"
        assert License.objects.filter(purchase_id=purchase.id).count() == 2

    def test_repeated_delivery_is_idempotent(
        self, api_client, fake_processor, make_purchase, paid_product
    ):
        """Test the same notification twice creates seats once."""
        purchase = make_purchase(paid_product, processor_ref="5003")
        fake_processor.add_payment("5003", "approved")
        url = reverse("purchases:payment-webhook")

        for _ in range(2):
            response = api_client.post(
                url, _notification("5003"), format="json", **_webhook_meta("5003")
            )
            assert response.status_code == 200

        assert License.objects.filter(purchase_id=purchase.id).count() == 1

    def test_query_string_notification(self, api_client, fake_processor, make_purchase, paid_product):
        """Test topic and id may come in the query string."""
        purchase = make_purchase(paid_product, processor_ref="5004")
        fake_processor.add_payment("5004", "approved")

        response = api_client.post(
            reverse("purchases:payment-webhook") + "?type=payment&data.id=5004",
            {},
            format="json",
            **_webhook_meta("5004"),
        )

        assert response.status_code == 200
        assert Purchase.objects.get(id=purchase.id).status == "approved"

    def test_other_topics_are_ignored(self, api_client, fake_processor, db):
        """Test non-payment topics are acknowledged and skipped."""
        response = api_client.post(
            reverse("purchases:payment-webhook"),
            {"type": "plan", "data": {"id": "77"}},
            format="json",
            **_webhook_meta("77"),
        )

        assert response.status_code == 200
        assert response.json()["processed"] is False

    def test_unknown_payment_acknowledged(self, api_client, fake_processor, db):
        """Test a payment the processor does not know is acknowledged."""
        response = api_client.post(
            reverse("purchases:payment-webhook"),
            _notification("404404"),
            format="json",
            **_webhook_meta("404404"),
        )

        assert response.status_code == 200
        assert response.json()["processed"] is False

    def test_payment_without_purchase_acknowledged(self, api_client, fake_processor, db):
        """Test a payment matching no purchase is acknowledged."""
        fake_processor.add_payment("5005", "approved", external_reference="PAY-unknown")

        response = api_client.post(
            reverse("purchases:payment-webhook"),
            _notification("5005"),
            format="json",
            **_webhook_meta("5005"),
        )

        assert response.status_code == 200
        assert response.json() == {
            "received": True,
            "processed": False,
            "reason": "purchase not found",
        }

    def test_stale_pending_after_approval(
        self, api_client, fake_processor, make_purchase, paid_product
    ):
        """Test a late pending notification leaves an approved purchase alone."""
        purchase = make_purchase(paid_product, processor_ref="5006")
        payment = fake_processor.add_payment("5006", "approved")
        url = reverse("purchases:payment-webhook")
        api_client.post(url, _notification("5006"), format="json", **_webhook_meta("5006"))

        payment.status = "pending"
        response = api_client.post(
            url, _notification("5006"), format="json", **_webhook_meta("5006")
        )

        assert response.json()["reason"] == "stale transition ignored"
        assert Purchase.objects.get(id=purchase.id).status == "approved"
        assert License.objects.filter(purchase_id=purchase.id).count() == 1


@pytest.mark.django_db
@pytest.mark.integration
class TestPurchaseLookupAPI:
    """Integration tests for status, history and download endpoints."""

    def test_status_by_purchase_id(self, api_client, provisioned_purchase, paid_product):
        """Test an approved purchase reports its download reference."""
        purchase = provisioned_purchase(paid_product)

        response = api_client.get(
            reverse("purchases:purchase-status", args=[paid_product.id]),
            {"purchase_id": purchase.id},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "approved"
        assert data["purchase_id"] == purchase.id
        assert data["download_url"].startswith("https://downloads.example.com/builds/")

    def test_status_by_payment_id(self, api_client, make_purchase, paid_product):
        """Test lookup by processor reference."""
        purchase = make_purchase(paid_product, processor_ref="7001")

        response = api_client.get(
            reverse("purchases:purchase-status", args=[paid_product.id]), {"payment_id": "7001"}
        )

        data = response.json()
        assert data["status"] == "pending"
        assert data["purchase_id"] == purchase.id
        assert data["download_url"] is None

    def test_status_by_email_prefers_approved(
        self, api_client, make_purchase, provisioned_purchase, paid_product
    ):
        """Test the email lookup returns the approved purchase first."""
        make_purchase(paid_product)
        approved = provisioned_purchase(paid_product)

        response = api_client.get(
            reverse("purchases:purchase-status", args=[paid_product.id]), {"email": EMAIL}
        )

        assert response.json()["purchase_id"] == approved.id

    def test_status_not_found(self, api_client, paid_product):
        """Test nothing matching answers not_found."""
        response = api_client.get(
            reverse("purchases:purchase-status", args=[paid_product.id]),
            {"purchase_id": "PAY-missing"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "not_found"

    def test_status_requires_a_key(self, api_client, paid_product):
        """Test one lookup key is required."""
        response = api_client.get(reverse("purchases:purchase-status", args=[paid_product.id]))

        assert response.status_code == 400

    def test_purchases_by_email_lists_approved_only(
        self, api_client, make_purchase, provisioned_purchase, free_product, paid_product
    ):
        """Test the history lists approved purchases."""
        provisioned_purchase(free_product)
        provisioned_purchase(paid_product, quantity=2)
        make_purchase(paid_product)

        response = api_client.get(reverse("purchases:purchases-by-email"), {"email": EMAIL})

        assert response.status_code == 200
        purchases = response.json()["purchases"]
        assert len(purchases) == 2
        assert all(item["status"] == "approved" for item in purchases)
        assert {item["quantity"] for item in purchases} == {1, 2}

    def test_purchases_by_email_filtered_by_product(
        self, api_client, provisioned_purchase, free_product, paid_product
    ):
        """Test the optional product filter."""
        provisioned_purchase(free_product)
        provisioned_purchase(paid_product)

        response = api_client.get(
            reverse("purchases:purchases-by-email"),
            {"email": EMAIL, "product_id": str(paid_product.id)},
        )

        purchases = response.json()["purchases"]
        assert [item["product_name"] for item in purchases] == [paid_product.name]

    def test_download_for_buyer(self, api_client, provisioned_purchase, paid_product):
        """Test a buyer gets the download reference and the counter moves."""
        provisioned_purchase(paid_product)
        url = reverse("purchases:purchase-download", args=[paid_product.id])

        first = api_client.post(url, {"email": EMAIL}, format="json")
        second = api_client.post(url, {"email": EMAIL}, format="json")

        assert first.status_code == 200
        assert first.json()["download_url"].startswith("https://downloads.example.com/")
        assert second.json()["download_count"] == 2

    def test_download_without_purchase(self, api_client, make_purchase, paid_product):
        """Test a pending purchase does not unlock the download."""
        make_purchase(paid_product)

        response = api_client.post(
            reverse("purchases:purchase-download", args=[paid_product.id]),
            {"email": EMAIL},
            format="json",
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "NO_LICENSE"


@pytest.mark.django_db
@pytest.mark.integration
class TestStaffPurchaseAPI:
    """Integration tests for staff endpoints."""

    def test_manual_approval_provisions(self, staff_client, make_purchase, paid_product):
        """Test approving by hand creates the seats once."""
        purchase = make_purchase(paid_product, quantity=2)
        url = reverse("purchases:update-purchase-status", args=[purchase.id])

        first = staff_client.post(url, {"status": "approved"}, format="json")
        second = staff_client.post(url, {"status": "approved"}, format="json")

        assert first.status_code == 200
        assert first.json()["changed"] is True
        assert first.json()["licenses_created"] == 2
        assert second.json()["changed"] is False
        assert License.objects.filter(purchase_id=purchase.id).count() == 2

    def test_manual_status_cannot_move_back(self, staff_client, make_purchase, paid_product):
        """Test the override follows the same transition rules."""
        purchase = make_purchase(paid_product, status=PurchaseStatus.APPROVED)

        response = staff_client.post(
            reverse("purchases:update-purchase-status", args=[purchase.id]),
            {"status": "pending"},
            format="json",
        )

        assert response.json()["reason"] == "stale transition ignored"
        assert Purchase.objects.get(id=purchase.id).status == "approved"

    def test_unknown_status_rejected(self, staff_client, make_purchase, paid_product):
        """Test only canonical statuses are accepted."""
        purchase = make_purchase(paid_product)

        response = staff_client.post(
            reverse("purchases:update-purchase-status", args=[purchase.id]),
            {"status": "in_process"},
            format="json",
        )

        assert response.status_code == 400

    def test_status_update_unknown_purchase(self, staff_client):
        """Test a missing purchase returns 404."""
        response = staff_client.post(
            reverse("purchases:update-purchase-status", args=["PAY-missing"]),
            {"status": "approved"},
            format="json",
        )

        assert response.status_code == 404

    def test_status_update_requires_staff(self, api_client, make_purchase, paid_product):
        """Test anonymous callers cannot override a status."""
        purchase = make_purchase(paid_product)

        response = api_client.post(
            reverse("purchases:update-purchase-status", args=[purchase.id]),
            {"status": "approved"},
            format="json",
        )

        assert response.status_code in (401, 403)
        assert Purchase.objects.get(id=purchase.id).status == "pending"

    def test_merge_guest_account(self, staff_client, django_user_model, make_purchase, paid_product):
        """Test a guest's purchases and licenses move to the account."""
        guest = django_user_model.objects.create_user(username="guest-1")
        account = django_user_model.objects.create_user(username="ana")
        purchase = make_purchase(paid_product)
        Purchase.objects.filter(id=purchase.id).update(owner_id=guest.pk)

        response = staff_client.post(
            reverse("purchases:merge-guest-account"),
            {"guest_id": guest.pk, "account_id": account.pk},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["purchases_moved"] == 1
        assert Purchase.objects.get(id=purchase.id).owner_id == account.pk
        guest.refresh_from_db()
        assert guest.is_active is False

    def test_merge_into_itself(self, staff_client, django_user_model):
        """Test a guest cannot be merged into itself."""
        user = django_user_model.objects.create_user(username="ana")

        response = staff_client.post(
            reverse("purchases:merge-guest-account"),
            {"guest_id": user.pk, "account_id": user.pk},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ACCOUNT_MERGE"

    def test_merge_unknown_account(self, staff_client, django_user_model):
        """Test merging into a missing account returns 404."""
        guest = django_user_model.objects.create_user(username="guest-1")

        response = staff_client.post(
            reverse("purchases:merge-guest-account"),
            {"guest_id": guest.pk, "account_id": 999999},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ACCOUNT_NOT_FOUND"
