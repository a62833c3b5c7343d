"""Timestamp helpers."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string, the format stored in timestamp columns."""
    return utc_now().isoformat()
