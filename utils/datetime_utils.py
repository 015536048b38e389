"""
Datetime helpers. All stored timestamps are naive UTC.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC, comparable with DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    return value.isoformat() if value is not None else None
