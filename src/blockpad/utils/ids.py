"""UUID generation utilities for Blockpad."""

import uuid


def generate_random_uuid() -> str:
    """
    Generate random UUID v4.

    Used for new blocks, calendar events and checklist items. Ids are never
    reused within a document because every call yields a fresh value.

    Returns:
        UUID string in standard format

    Example:
        >>> generate_random_uuid()
        "f47ac10b-58cc-4372-a567-0e02b2c3d479"
    """
    return str(uuid.uuid4())
