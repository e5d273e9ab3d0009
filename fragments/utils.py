"""Utility helper functions for the Fragments service."""

import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def get_current_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        Current timestamp as ISO format string (e.g. 2024-01-01T00:00:00.000Z)
    """
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


def blob_key(owner_id: str, fragment_id: str) -> str:
    """
    Build the composite key that addresses a fragment's data blob.
    """
    return f"{owner_id}/{fragment_id}"
