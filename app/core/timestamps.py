from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # sqlite hands timestamps back naive
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


def next_stamp(previous: Optional[datetime]) -> datetime:
    """A fresh ``updated_at`` that never goes backwards."""
    now = utcnow()
    previous = as_utc(previous)
    if previous is not None and previous > now:
        return previous
    return now
