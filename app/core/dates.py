from datetime import date, datetime, time, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[Union[datetime, date, str]]) -> Optional[datetime]:
    """Coerce a stored date/datetime value to an aware UTC ``datetime``.

    Naive datetimes are assumed to already be in UTC.  Bare dates become
    midnight UTC.  ISO strings (as returned by JSON caches) are parsed.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
