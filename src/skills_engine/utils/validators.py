"""Boundary validation helpers.

Functions:
- is_valid_uuid(value) -> bool: user_id format check
- clean_optional_text(value) -> str | None: trim, empty -> None
"""

from __future__ import annotations

import re
from typing import Any

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_uuid(value: Any) -> bool:
    """Check the canonical 8-4-4-4-12 hex form."""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value.strip()))


def clean_optional_text(value: Any) -> str | None:
    """Trim strings; empty strings become None, other values pass through."""
    if isinstance(value, str):
        return value.strip() or None
    return value
