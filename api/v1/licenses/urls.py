"""
URL configuration for license API endpoints.
"""

from django.urls import path

from api.v1.licenses import views

app_name = "licenses"

urlpatterns = [
    path(
        "activate-device",
        views.ActivateDeviceView.as_view(),
        name="activate-device",
    ),
    path(
        "verify",
        views.VerifyDeviceView.as_view(),
        name="verify-device",
    ),
    path(
        "compat/check",
        views.CompatLicenseCheckView.as_view(),
        name="compat-license-check",
    ),
    path(
        "claim-by-email",
        views.ClaimByEmailView.as_view(),
        name="claim-by-email",
    ),
    path(
        "<int:license_id>/release",
        views.ReleaseDeviceView.as_view(),
        name="release-device",
    ),
]
