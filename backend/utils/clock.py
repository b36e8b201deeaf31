# backend/utils/clock.py
from datetime import datetime, timezone


# Naive UTC timestamp, the format every DateTime column in this app stores
def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Convert a stored timestamp into the server's local wall-clock time
def to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone().replace(tzinfo=None)


# Aware timestamps from clients are stored as naive UTC
def as_naive_utc(value):
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
