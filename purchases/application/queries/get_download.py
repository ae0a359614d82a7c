"""
GetDownloadQuery.
"""

import uuid
from dataclasses import dataclass


@dataclass
class GetDownloadQuery:
    """Query for a product's download reference on behalf of a buyer."""

    product_id: uuid.UUID
    email: str
