"""
License key generation.

A license key is an opaque bearer token: four groups of six uppercase
hex characters joined by hyphens, e.g. ``3FA9C1-07BD2E-A1C4F0-9E2D11``.
"""
import re
import secrets

KEY_GROUPS = 4
GROUP_BYTES = 3

LICENSE_KEY_PATTERN = re.compile(r"^[0-9A-F]{6}(-[0-9A-F]{6}){3}$")


def generate_license_key() -> str:
    """
    Generate a license key.

    Returns:
        Generated license key string
    """
    return "-".join(secrets.token_hex(GROUP_BYTES).upper() for _ in range(KEY_GROUPS))


def is_well_formed(key: str) -> bool:
    """Check that a string has the license key shape."""
    return bool(key) and LICENSE_KEY_PATTERN.match(key) is not None
