"""
Utility helpers shared across routers/services.
"""

from datetime import datetime, timezone
import uuid


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize datetimes to aware UTC (SQLite hands back naive values)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex
