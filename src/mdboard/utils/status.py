"""Status name normalization."""

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_status(status: str | None, default: str = "") -> str:
    """Normalize a status name for comparison.

    Example: "  In   PROGRESS " -> "in progress"
    """
    if status is None or not status.strip():
        status = default
    return _WHITESPACE.sub(" ", status.strip().lower())


def normalize_status_filter(status: str) -> str:
    """Normalize a status for export filtering.

    Spaces are dropped entirely and "todo" is treated as "ready".
    """
    compact = _WHITESPACE.sub("", status.strip().lower())
    if compact == "todo":
        return "ready"
    return compact
