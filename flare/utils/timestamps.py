import datetime
from typing import Optional, Union


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def iso_timestamp(value: Optional[Union[datetime.datetime, float]] = None) -> str:
    """
    Format a point in time as ISO-8601 UTC with a ``Z`` suffix.

    Args:
        value: A datetime or unix seconds, now when None.
    """
    if value is None:
        value = utc_now()
    elif isinstance(value, (int, float)):
        value = datetime.datetime.fromtimestamp(value, datetime.timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)

    return value.astimezone(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")