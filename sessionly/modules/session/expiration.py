"""Conversion of user supplied expiration values to Unix timestamps."""

import math
from datetime import datetime, timedelta
from typing import Optional, Union

from pydantic import TypeAdapter, ValidationError

# numeric values up to one year are relative to now
YEAR = 365 * 24 * 60 * 60

ExpirationTime = Union[None, int, float, str, timedelta, datetime]

_timedelta_adapter = TypeAdapter(timedelta)
_datetime_adapter = TypeAdapter(datetime)


def to_timestamp(value: ExpirationTime, now: float) -> Optional[int]:
    """
    Resolve an expiration value against the current time.

    Args:
        value: None or 0 (never), seconds (relative up to one year, absolute
            timestamp above), timedelta, datetime, or an ISO-8601 duration
            or datetime string
        now: Current Unix time

    Returns:
        Absolute Unix timestamp, or None for no expiration

    Raises:
        ValueError: If the value cannot be interpreted as a time
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid expiration time: {value!r}")
    if value is None or value == "" or value == 0:
        return None
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, timedelta):
        return int(now + value.total_seconds())
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Invalid expiration time: {value!r}")
        return int(now + value) if value <= YEAR else int(value)
    if isinstance(value, str):
        return _parse_string(value.strip(), now)
    raise ValueError(f"Invalid expiration time: {value!r}")


def _parse_string(value: str, now: float) -> int:
    try:
        return to_timestamp(float(value), now)
    except ValueError:
        pass
    try:
        return int(now + _timedelta_adapter.validate_python(value).total_seconds())
    except ValidationError:
        pass
    try:
        return int(_datetime_adapter.validate_python(value).timestamp())
    except ValidationError:
        raise ValueError(f"Invalid expiration time: {value!r}") from None
