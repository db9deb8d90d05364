"""Timestamps for persisted resources: ISO 8601, UTC, fixed width."""
from datetime import datetime, timezone


def utc_now_iso() -> str:
    """
    Current UTC time as e.g. "2024-01-15T12:00:00.123456+00:00".

    Microseconds are always present so lexical order matches time order.
    """
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
