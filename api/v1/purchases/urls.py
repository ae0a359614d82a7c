"""
URL configuration for purchase API endpoints.
"""

from django.urls import path

from api.v1.purchases import views

app_name = "purchases"

urlpatterns = [
    path(
        "products/<uuid:product_id>/checkout",
        views.CheckoutView.as_view(),
        name="create-checkout",
    ),
    path(
        "products/<uuid:product_id>/direct-charge",
        views.DirectChargeView.as_view(),
        name="create-direct-charge",
    ),
    path(
        "products/<uuid:product_id>/status",
        views.PurchaseStatusView.as_view(),
        name="purchase-status",
    ),
    path(
        "products/<uuid:product_id>/download",
        views.DownloadView.as_view(),
        name="purchase-download",
    ),
    path(
        "by-email",
        views.PurchasesByEmailView.as_view(),
        name="purchases-by-email",
    ),
    path(
        "webhook",
        views.WebhookView.as_view(),
        name="payment-webhook",
    ),
    path(
        "accounts/merge",
        views.MergeAccountView.as_view(),
        name="merge-guest-account",
    ),
    path(
        "<str:purchase_id>/status",
        views.UpdatePurchaseStatusView.as_view(),
        name="update-purchase-status",
    ),
]
