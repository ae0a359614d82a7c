"""
Unit tests for logging and request middleware helpers.
"""

import logging

import pytest

from core.middleware.metrics import normalize_endpoint
from core.middleware.observability import request_status
from core.middleware.rate_limit import scope_for
from EntitlementService.settings.logging import MaskEmailFilter, get_logging_config, mask_email


def _record(msg, *args, **extra):
    record = logging.LogRecord("purchases", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestMaskEmail:
    """Tests for email masking in logs."""

    def test_mask_email(self):
        """Test the local part is reduced to its first character."""
        assert mask_email("buyer@example.com") == "b***@example.com"
        assert mask_email("no email here") == "no email here"

    def test_filter_masks_message_args_and_extras(self):
        """Test every place an email can reach a record."""
        record = _record(
            "Download of %s by %s",
            "desk-timer",
            "ana.souza@example.com",
            payer_email="buyer@example.com",
            purchase_id="PAY-1",
        )

        assert MaskEmailFilter().filter(record) is True
        assert record.getMessage() == "Download of desk-timer by a***@example.com"
        assert record.payer_email == "b***@example.com"
        assert record.purchase_id == "PAY-1"

    def test_filter_leaves_non_string_args(self):
        """Test numeric arguments are untouched."""
        record = _record("Purchase %s has %d seat(s)", "PAY-1", 3)

        MaskEmailFilter().filter(record)

        assert record.getMessage() == "Purchase PAY-1 has 3 seat(s)"


class TestLoggingConfig:
    """Tests for get_logging_config."""

    def test_test_environment_is_quiet(self):
        """Test app loggers only emit warnings in tests."""
        config = get_logging_config("test")

        assert config["loggers"]["purchases"]["level"] == "WARNING"
        assert config["handlers"]["console"]["filters"] == ["mask_email"]
        assert "file" not in config["handlers"]

    def test_production_writes_file(self):
        """Test production adds the rotating file handler everywhere."""
        config = get_logging_config("production")

        assert config["loggers"]["activations"]["level"] == "INFO"
        assert config["loggers"]["activations"]["handlers"] == ["console", "file"]
        assert config["root"]["handlers"] == ["console", "file"]


class TestMiddlewareHelpers:
    """Tests for path and status helpers of the middleware."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/api/v1/licenses/activate-device", "activation"),
            ("/api/v1/licenses/verify", "licenses"),
            ("/api/v1/purchases/by-email", "purchases"),
            ("/api/v1/purchases/webhook", None),
            ("/health/", None),
        ],
    )
    def test_scope_for(self, path, expected):
        """Test rate limit scopes and exemptions."""
        assert scope_for(path) == expected

    @pytest.mark.parametrize(
        "path,expected",
        [
            (
                "/api/v1/purchases/products/0b6c9a52-3f0e-4a53-9d0f-5d1f7e0b8c11/checkout",
                "/api/v1/purchases/products/{id}/checkout",
            ),
            ("/api/v1/purchases/PAY-3fa9c1/status", "/api/v1/purchases/{purchase_id}/status"),
            ("/api/v1/licenses/42/release", "/api/v1/licenses/{id}/release"),
        ],
    )
    def test_normalize_endpoint(self, path, expected):
        """Test ids are collapsed in metric labels."""
        assert normalize_endpoint(path) == expected

    @pytest.mark.parametrize(
        "status_code,expected",
        [(200, "success"), (201, "success"), (403, "client_error"), (503, "server_error")],
    )
    def test_request_status(self, status_code, expected):
        """Test status code buckets."""
        assert request_status(status_code) == expected
