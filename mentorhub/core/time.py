from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Any) -> Optional[datetime]:
    """Normalise a stored timestamp to an aware UTC datetime; anything else is None."""
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Any) -> Optional[str]:
    """Render a stored timestamp as an ISO-8601 UTC string."""
    value = as_utc(value)
    return value.isoformat() if value is not None else None
