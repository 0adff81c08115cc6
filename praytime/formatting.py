"""
Rounding and rendering of epoch-millisecond timestamps.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from .models import EffectiveSettings, TimeName, TimeTable

INVALID_TIME = "-----"

MS_PER_MINUTE = 60_000

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def round_time(timestamp: float, rounding: str) -> float:
    """Round an epoch-ms timestamp to a whole minute.

    "nearest" rounds halves up, "up" and "down" are ceil and floor, and
    "none" returns the timestamp unchanged.
    """
    if rounding == "none":
        return timestamp
    minutes = timestamp / MS_PER_MINUTE
    if rounding == "nearest":
        whole = math.floor(minutes + 0.5)
    elif rounding == "up":
        whole = math.ceil(minutes)
    elif rounding == "down":
        whole = math.floor(minutes)
    else:
        raise ValueError(f"Unknown rounding {rounding!r}")
    return whole * MS_PER_MINUTE


def to_local_datetime(timestamp: float, settings: EffectiveSettings) -> datetime:
    """Wall-clock datetime of a timestamp in the configured zone and offset."""
    offset = 0.0 if settings.utc_offset == "auto" else settings.utc_offset
    ms = timestamp + offset * MS_PER_MINUTE
    utc = _UNIX_EPOCH + timedelta(milliseconds=ms)
    return utc.astimezone(ZoneInfo(settings.timezone))


def time_to_string(timestamp: float, settings: EffectiveSettings) -> str:
    dt = to_local_datetime(timestamp, settings)
    if settings.time_format == "24h":
        return f"{dt.hour:02d}:{dt.minute:02d}"

    hour = dt.hour % 12 or 12
    text = f"{hour}:{dt.minute:02d}"
    if settings.time_format == "12H":
        return text
    return f"{text} {'AM' if dt.hour < 12 else 'PM'}"


def format_time(timestamp: float, settings: EffectiveSettings) -> str:
    fmt = settings.time_format
    if math.isnan(timestamp):
        return INVALID_TIME
    if callable(fmt):
        return fmt(timestamp)
    if fmt in ("x", "X"):
        divisor = 1000 if fmt == "X" else 1
        return str(math.floor(timestamp / divisor))
    return time_to_string(timestamp, settings)


def format_times(times: TimeTable, settings: EffectiveSettings) -> dict[TimeName, str]:
    return {name: format_time(value, settings) for name, value in times.items()}
