"""
Praytime - Islamic prayer times from solar position astronomy.

Example usage:
    from praytime import Location, prayer_times

    loc = Location(latitude_deg=21.4225, longitude_deg_east=39.8262)
    times = prayer_times((2025, 3, 1), loc, method="Makkah", timezone="Asia/Riyadh")
    print(times["fajr"], times["isha"])
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Any, Optional

from .calculator import PrayTime
from .compute import DateLike, compute_times
from .errors import ConfigurationError, PrayTimeError, UnknownMethodError
from .formatting import INVALID_TIME, format_times
from .methods import get_method, list_methods
from .models import (
    Angle,
    CalculationMethod,
    DaySchedule,
    EffectiveSettings,
    Location,
    Minutes,
    TimeTable,
)
from .qibla import qibla_direction
from .settings import SettingsBuilder, resolve_settings

__all__ = [
    "Angle",
    "CalculationMethod",
    "ConfigurationError",
    "DaySchedule",
    "EffectiveSettings",
    "INVALID_TIME",
    "Location",
    "Minutes",
    "PrayTime",
    "PrayTimeError",
    "SettingsBuilder",
    "TimeTable",
    "UnknownMethodError",
    "compute_times",
    "format_times",
    "get_method",
    "list_methods",
    "month_schedule",
    "prayer_times",
    "qibla_direction",
    "resolve_settings",
]


def prayer_times(
    d: DateLike,
    location: Location,
    *,
    method: str = "MWL",
    timezone: Optional[str] = None,
    **options: Any,
) -> dict[str, str]:
    """Formatted prayer times for one date and location.

    Args:
        d: Calendar date, as a `datetime.date` or (year, month, day).
        location: Geographic location.
        method: Calculation method name, or "custom".
        timezone: IANA zone used for rendering (default: UTC).
        **options: Further settings accepted by `resolve_settings`, e.g.
            asr="Hanafi", high_lats="OneSeventh", time_format="12h".

    Returns:
        Mapping of time name to formatted string.
    """
    settings = resolve_settings(
        method, location=location, timezone=timezone, **options
    )
    return format_times(compute_times(settings, d), settings)


def month_schedule(
    year: int, month: int, settings: EffectiveSettings
) -> list[DaySchedule]:
    """Formatted times for every day of a calendar month.

    Args:
        year: Gregorian year.
        month: Month number, 1-12.
        settings: Resolved settings shared by all days.

    Returns:
        One DaySchedule per day, in date order.
    """
    _, days = calendar.monthrange(year, month)
    out = []
    for day in range(1, days + 1):
        d = date(year, month, day)
        out.append(
            DaySchedule(day=d, times=format_times(compute_times(settings, d), settings))
        )
    return out
