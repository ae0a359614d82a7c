"""
ReceiveWebhookCommand.

Command carrying one payment processor notification as received.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping


@dataclass
class ReceiveWebhookCommand:
    """Raw webhook delivery: headers, decoded JSON body and query string."""

    headers: Mapping[str, str]
    body: Dict[str, Any]
    query: Mapping[str, str] = field(default_factory=dict)
