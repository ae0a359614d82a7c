"""
Webhook signature verification.

The processor signs each notification with ``x-signature: ts=<ts>,v1=<hmac>``
where the HMAC is computed over
``id:{data_id};request-id:{x-request-id};ts:{ts};`` with the shared secret.
"""
import hashlib
import hmac
import logging
from typing import Mapping, Optional, Tuple

from core.domain.exceptions import WebhookSignatureError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-signature"
REQUEST_ID_HEADER = "x-request-id"


def build_manifest(data_id: str, request_id: str, ts: str) -> str:
    """Build the string the processor signs."""
    return f"id:{data_id};request-id:{request_id};ts:{ts};"


def compute_signature(secret: str, data_id: str, request_id: str, ts: str) -> str:
    """
    Compute the expected signature.

    Args:
        secret: Shared webhook secret
        data_id: Notification data id
        request_id: Value of the x-request-id header
        ts: Timestamp from the x-signature header

    Returns:
        HMAC-SHA256 hex digest
    """
    manifest = build_manifest(data_id, request_id, ts)
    return hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()


def parse_signature_header(value: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Split ``ts=...,v1=...`` into its parts.

    Returns:
        Tuple of (ts, v1); missing parts are None
    """
    ts = None
    v1 = None
    for part in value.split(","):
        key, _, item = part.strip().partition("=")
        if key == "ts":
            ts = item.strip() or None
        elif key == "v1":
            v1 = item.strip() or None
    return ts, v1


class WebhookAuthenticator:
    """
    Verifies that a notification was signed by the payment processor.

    Without a secret every delivery is accepted and a warning is logged.
    """

    def __init__(self, secret: Optional[str]):
        self.secret = secret or ""

    @property
    def enabled(self) -> bool:
        return bool(self.secret)

    def authenticate(self, headers: Mapping[str, str], data_id: Optional[str]) -> None:
        """
        Authenticate a webhook delivery.

        Args:
            headers: Request headers (any capitalisation)
            data_id: ``data.id`` from the notification body

        Raises:
            WebhookSignatureError: If the signature is missing or invalid
        """
        if not self.enabled:
            logger.warning(
                "Webhook secret not configured: accepting notification WITHOUT signature check"
            )
            return

        normalized = {key.lower(): value for key, value in headers.items()}
        signature = normalized.get(SIGNATURE_HEADER)
        request_id = normalized.get(REQUEST_ID_HEADER)
        if not signature or not request_id:
            logger.warning("Webhook rejected: signature or request id header missing")
            raise WebhookSignatureError()

        ts, received = parse_signature_header(signature)
        if not ts or not received:
            logger.warning("Webhook rejected: malformed signature header")
            raise WebhookSignatureError()

        expected = compute_signature(self.secret, str(data_id or ""), request_id, ts)
        if not hmac.compare_digest(expected, received):
            logger.warning(
                "Webhook rejected: signature mismatch", extra={"request_id": request_id}
            )
            raise WebhookSignatureError()
