"""
ListLicensesByEmailQuery.

Query used by the "claim by email" flow to show a holder their keys.
"""

from dataclasses import dataclass


@dataclass
class ListLicensesByEmailQuery:
    """Query to list all licenses held by an email."""

    email: str
