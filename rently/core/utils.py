import datetime
import logging

logger = logging.getLogger(__name__)

def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)

def as_utc(value: datetime.datetime) -> datetime.datetime:
    """SQLite hands back naive datetimes even for timezone=True columns;
    treat those as UTC so they compare with aware timestamps."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)
