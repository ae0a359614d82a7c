"""
Unit tests for webhook signature verification and notification parsing.
"""

import pytest

from core.domain.exceptions import WebhookSignatureError
from purchases.application.commands.receive_webhook import ReceiveWebhookCommand
from purchases.application.handlers.receive_webhook_handler import extract_notification
from purchases.application.services.webhook_authenticator import (
    WebhookAuthenticator,
    build_manifest,
    compute_signature,
    parse_signature_header,
)

SECRET = "shh"


def _headers(data_id, secret=SECRET, request_id="req-42", ts="1700000000"):
    signature = compute_signature(secret, data_id, request_id, ts)
    return {"X-Signature": f"ts={ts},v1={signature}", "X-Request-Id": request_id}


class TestSignatureHelpers:
    """Tests for manifest and header helpers."""

    def test_manifest_format(self):
        """Test the signed string layout."""
        assert build_manifest("123", "req-1", "99") == "id:123;request-id:req-1;ts:99;"

    def test_parse_signature_header(self):
        """Test splitting ts and v1."""
        assert parse_signature_header("ts=99, v1=abc") == ("99", "abc")

    def test_parse_signature_header_missing_parts(self):
        """Test missing parts come back as None."""
        assert parse_signature_header("v1=abc") == (None, "abc")
        assert parse_signature_header("garbage") == (None, None)


class TestWebhookAuthenticator:
    """Tests for WebhookAuthenticator."""

    def test_valid_signature(self):
        """Test a correctly signed delivery passes."""
        WebhookAuthenticator(SECRET).authenticate(_headers("123"), "123")

    def test_headers_are_case_insensitive(self):
        """Test lower-cased header names are accepted."""
        headers = {key.lower(): value for key, value in _headers("123").items()}
        WebhookAuthenticator(SECRET).authenticate(headers, "123")

    def test_wrong_secret(self):
        """Test a signature made with another secret is rejected."""
        with pytest.raises(WebhookSignatureError):
            WebhookAuthenticator(SECRET).authenticate(_headers("123", secret="other"), "123")

    def test_tampered_data_id(self):
        """Test the signature covers the data id."""
        with pytest.raises(WebhookSignatureError):
            WebhookAuthenticator(SECRET).authenticate(_headers("123"), "124")

    def test_missing_signature_header(self):
        """Test a delivery without signature is rejected."""
        with pytest.raises(WebhookSignatureError):
            WebhookAuthenticator(SECRET).authenticate({"x-request-id": "req-42"}, "123")

    def test_missing_request_id(self):
        """Test a delivery without request id is rejected."""
        headers = _headers("123")
        del headers["X-Request-Id"]
        with pytest.raises(WebhookSignatureError):
            WebhookAuthenticator(SECRET).authenticate(headers, "123")

    def test_malformed_signature_header(self):
        """Test a header without v1 is rejected."""
        headers = {"x-signature": "ts=1700000000", "x-request-id": "req-42"}
        with pytest.raises(WebhookSignatureError):
            WebhookAuthenticator(SECRET).authenticate(headers, "123")

    def test_error_code(self):
        """Test the rejection carries its error code."""
        with pytest.raises(WebhookSignatureError) as exc_info:
            WebhookAuthenticator(SECRET).authenticate({}, "123")
        assert exc_info.value.code == "INVALID_WEBHOOK_SIGNATURE"

    def test_without_secret_everything_passes(self):
        """Test an unconfigured secret disables the check."""
        authenticator = WebhookAuthenticator("")

        assert authenticator.enabled is False
        authenticator.authenticate({}, "123")


class TestExtractNotification:
    """Tests for reading topic and data id from a delivery."""

    def test_body_fields(self):
        """Test topic and id from the JSON body."""
        command = ReceiveWebhookCommand(
            headers={}, body={"type": "payment", "data": {"id": 123456}}
        )
        assert extract_notification(command) == ("payment", "123456")

    def test_query_fallback(self):
        """Test topic and id from the query string."""
        command = ReceiveWebhookCommand(
            headers={}, body={}, query={"type": "payment", "data.id": "987"}
        )
        assert extract_notification(command) == ("payment", "987")

    def test_legacy_topic_and_id(self):
        """Test the older ``topic``/``id`` parameters."""
        command = ReceiveWebhookCommand(
            headers={}, body={}, query={"topic": "merchant_order", "id": "55"}
        )
        assert extract_notification(command) == ("merchant_order", "55")

    def test_body_wins_over_query(self):
        """Test the body is authoritative."""
        command = ReceiveWebhookCommand(
            headers={},
            body={"type": "payment", "data": {"id": "1"}},
            query={"type": "plan", "data.id": "2"},
        )
        assert extract_notification(command) == ("payment", "1")

    def test_nothing_to_read(self):
        """Test an empty delivery."""
        command = ReceiveWebhookCommand(headers={}, body={})
        assert extract_notification(command) == (None, None)
