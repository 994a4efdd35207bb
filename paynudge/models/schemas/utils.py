"""Common utility functions for schemas."""
from __future__ import annotations

from typing import Any


def blank_to_none(value: Any) -> Any:
    """Treat empty or whitespace-only strings as an absent value."""
    if isinstance(value, str) and not value.strip():
        return None
    return value
