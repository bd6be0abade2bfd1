# priorart/engine/clock.py
from datetime import datetime, timezone


def as_utc(dt: datetime) -> datetime:
    """Naive timestamps are taken to be UTC so they compare with aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
