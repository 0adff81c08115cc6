"""
Prayer time solver.

Pipeline per query: iterative estimate -> high-latitude correction ->
minute-based times, Jafari midnight, Dhuhr offset -> tuning -> conversion to
rounded epoch milliseconds.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Tuple, Union

from . import astro
from .astro import arccos, arccot, cos, sin, tan
from .formatting import round_time
from .models import (
    Angle,
    EffectiveSettings,
    Minutes,
    SunPosition,
    TimeName,
    TimeTable,
)

logger = logging.getLogger(__name__)

# Apparent altitude of the sun's upper limb at rise/set, refraction included.
HORIZON_DEG = 0.833

MS_PER_HOUR = 3_600_000
MS_PER_DAY = 86_400_000

# Seed hour for the next-day Fajr estimate used by the Jafari midnight.
NEXT_FAJR_SEED = 29.0

HIGH_LAT_FACTORS = {
    "NightMiddle": 1.0 / 2.0,
    "OneSeventh": 1.0 / 7.0,
}

_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()

DateLike = Union[date, Tuple[int, int, int]]


def as_date(d: DateLike) -> date:
    if isinstance(d, date):
        return date(d.year, d.month, d.day)
    year, month, day = d
    return date(year, month, day)


def utc_midnight_ms(d: date) -> int:
    return (d.toordinal() - _EPOCH_ORDINAL) * MS_PER_DAY


@dataclass
class ComputationContext:
    """Per-call state: the date, the settings, the sun cache and the adjusted flag.

    A new context is created for every computation; nothing here is shared
    between queries.
    """

    settings: EffectiveSettings
    utc_midnight_ms: int
    adjusted: bool = False
    sun_cache: dict[float, SunPosition] = field(default_factory=dict)

    @classmethod
    def for_date(cls, settings: EffectiveSettings, d: DateLike) -> ComputationContext:
        return cls(settings=settings, utc_midnight_ms=utc_midnight_ms(as_date(d)))

    @property
    def latitude(self) -> float:
        return self.settings.location.latitude_deg

    @property
    def longitude(self) -> float:
        return self.settings.location.longitude_deg_east


def sun_position(ctx: ComputationContext, time: float) -> SunPosition:
    cached = ctx.sun_cache.get(time)
    if cached is not None:
        return cached

    D = (
        ctx.utc_midnight_ms / MS_PER_DAY
        - astro.UNIX_DAYS_AT_J2000
        + time / 24.0
        - ctx.longitude / 360.0
    )
    pos = astro.solar_coordinates(D)
    ctx.sun_cache[time] = pos
    return pos


def mid_day(ctx: ComputationContext, time: float) -> float:
    """Local solar noon (hours) from the equation of time at `time`."""
    eqt = sun_position(ctx, time).equation
    return astro.mod(12.0 - eqt, 24.0)


def angle_time(
    ctx: ComputationContext, angle: float, time: float, direction: int = 1
) -> float:
    """Time when the sun is `angle` degrees below the horizon.

    `direction` is -1 before noon and +1 after. Returns NaN when the sun never
    reaches that depression on this date and latitude.
    """
    lat = ctx.latitude
    decl = sun_position(ctx, time).declination
    numerator = -sin(angle) - sin(lat) * sin(decl)
    diff = arccos(numerator / (cos(lat) * cos(decl))) / 15.0
    return mid_day(ctx, time) + diff * direction


def asr_angle(ctx: ComputationContext, shadow_factor: float, time: float) -> float:
    decl = sun_position(ctx, time).declination
    return -arccot(shadow_factor + tan(abs(ctx.latitude - decl)))


def process_times(ctx: ComputationContext, times: TimeTable) -> TimeTable:
    """One refinement pass, each time solved at the previous estimate."""
    s = ctx.settings

    maghrib = times.maghrib
    if isinstance(s.maghrib, Angle):
        maghrib = angle_time(ctx, s.maghrib.degrees, times.maghrib)
    isha = times.isha
    if isinstance(s.isha, Angle):
        isha = angle_time(ctx, s.isha.degrees, times.isha)

    return TimeTable(
        fajr=angle_time(ctx, s.fajr, times.fajr, -1),
        sunrise=angle_time(ctx, HORIZON_DEG, times.sunrise, -1),
        dhuhr=mid_day(ctx, times.dhuhr),
        asr=angle_time(ctx, asr_angle(ctx, s.asr_factor, times.asr), times.asr),
        sunset=angle_time(ctx, HORIZON_DEG, times.sunset),
        maghrib=maghrib,
        isha=isha,
        midnight=mid_day(ctx, times.midnight) + 12.0,
    )


def night_portion(rule: str, angle: float, night: float) -> float:
    if rule == "AngleBased":
        return angle / 60.0 * night
    return HIGH_LAT_FACTORS[rule] * night


def adjust_time(
    ctx: ComputationContext,
    name: TimeName,
    time: float,
    base: float,
    angle: float,
    night: float,
    direction: int = 1,
) -> float:
    portion = night_portion(ctx.settings.high_lats, angle, night)
    time_diff = (time - base) * direction
    if math.isnan(time) or time_diff > portion:
        adjusted = base + portion * direction
        logger.debug(
            "%s rule moved %s from %.4f h to %.4f h",
            ctx.settings.high_lats,
            name,
            time,
            adjusted,
        )
        ctx.adjusted = True
        return adjusted
    return time


def adjust_high_lats(ctx: ComputationContext, times: TimeTable) -> None:
    """Bound twilight times by a portion of the night (in place)."""
    s = ctx.settings
    if s.high_lats == "None":
        return

    ctx.adjusted = False
    night = 24.0 + times.sunrise - times.sunset

    times.fajr = adjust_time(ctx, "fajr", times.fajr, times.sunrise, s.fajr, night, -1)
    if isinstance(s.isha, Angle):
        times.isha = adjust_time(
            ctx, "isha", times.isha, times.sunset, s.isha.degrees, night
        )
    if isinstance(s.maghrib, Angle):
        times.maghrib = adjust_time(
            ctx, "maghrib", times.maghrib, times.sunset, s.maghrib.degrees, night
        )


def update_times(ctx: ComputationContext, times: TimeTable) -> None:
    """Minute-based Maghrib/Isha, Jafari midnight and the Dhuhr offset, in that order."""
    s = ctx.settings

    if isinstance(s.maghrib, Minutes):
        times.maghrib = times.sunset + s.maghrib.minutes / 60.0
    if isinstance(s.isha, Minutes):
        times.isha = times.maghrib + s.isha.minutes / 60.0
    if s.midnight == "Jafari":
        if ctx.adjusted:
            fajr = times.fajr + 24.0
        else:
            fajr = angle_time(ctx, s.fajr, NEXT_FAJR_SEED, -1) + 24.0
        times.midnight = (times.sunset + fajr) / 2.0
    times.dhuhr += s.dhuhr_minutes / 60.0


def tune_times(ctx: ComputationContext, times: TimeTable) -> None:
    for name, minutes in ctx.settings.tune.items():
        setattr(times, name, getattr(times, name) + minutes / 60.0)


def convert_times(ctx: ComputationContext, times: TimeTable) -> None:
    """Hours -> rounded epoch milliseconds, applying the longitude correction."""
    lng = ctx.longitude
    for name, value in times.items():
        t = value - lng / 15.0
        if math.isnan(t):
            setattr(times, name, math.nan)
            continue
        timestamp = ctx.utc_midnight_ms + math.floor(t * MS_PER_HOUR)
        setattr(times, name, round_time(timestamp, ctx.settings.rounding))


def estimate_times(ctx: ComputationContext) -> TimeTable:
    """Run all stages before conversion; the result is in hours."""
    times = TimeTable()
    for _ in range(ctx.settings.iterations):
        times = process_times(ctx, times)

    adjust_high_lats(ctx, times)
    update_times(ctx, times)
    tune_times(ctx, times)
    return times


def compute_times(settings: EffectiveSettings, d: DateLike) -> TimeTable:
    """Compute the time table for one date as epoch milliseconds.

    Args:
        settings: Resolved calculation settings.
        d: Calendar date, as a `datetime.date` or a (year, month, day) tuple.

    Returns:
        TimeTable whose fields are rounded epoch milliseconds, or NaN where
        the time is undefined.
    """
    ctx = ComputationContext.for_date(settings, d)
    times = estimate_times(ctx)
    convert_times(ctx, times)
    return times
