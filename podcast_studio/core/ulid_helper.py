"""ULID identifiers for reservations, catalog items and history rows."""

from typing import Optional

import ulid


def generate_ulid() -> str:
    """New 26-character, time-ordered identifier."""
    return str(ulid.ULID())


def parse_ulid(value: str) -> Optional[ulid.ULID]:
    """``ULID`` for ``value``, or None when it is not a well-formed ULID."""
    try:
        return ulid.ULID.from_str(value)
    except (ValueError, TypeError, AttributeError):
        return None


def is_valid_ulid(value: str) -> bool:
    return parse_ulid(value) is not None
