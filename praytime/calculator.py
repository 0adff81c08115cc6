"""
Chainable prayer time calculator.

    pt = PrayTime("ISNA").location(43.0, -80.0).timezone("America/Toronto")
    pt.times((2025, 3, 1))
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple, Union

from .compute import DateLike, compute_times
from .formatting import format_times
from .models import EffectiveSettings, Location, TimeFormat, TimeName, TimeTable
from .settings import SettingsBuilder


class PrayTime:
    """Fluent wrapper around SettingsBuilder and compute_times.

    Setters return the instance. Settings are resolved on every call to
    `times`, and each call computes with its own context, so one instance can
    serve many dates.
    """

    def __init__(self, method: str = "MWL") -> None:
        self._builder = SettingsBuilder(method)

    def method(self, name: str) -> PrayTime:
        self._builder.method(name)
        return self

    def adjust(self, **params: Any) -> PrayTime:
        self._builder.adjust(**params)
        return self

    def location(
        self, latitude: Union[float, Location], longitude: Optional[float] = None
    ) -> PrayTime:
        self._builder.location(latitude, longitude)
        return self

    def timezone(self, name: str) -> PrayTime:
        self._builder.timezone(name)
        return self

    def utc_offset(self, offset: Union[float, str] = "auto") -> PrayTime:
        self._builder.utc_offset(offset)
        return self

    def tune(self, minutes: Mapping[str, float]) -> PrayTime:
        self._builder.tune(minutes)
        return self

    def round(self, rounding: str = "nearest") -> PrayTime:
        self._builder.round(rounding)
        return self

    def format(self, time_format: TimeFormat) -> PrayTime:
        self._builder.format(time_format)
        return self

    def iterations(self, count: int) -> PrayTime:
        self._builder.iterations(count)
        return self

    @property
    def settings(self) -> EffectiveSettings:
        return self._builder.build()

    def timestamps(self, d: DateLike) -> TimeTable:
        """Rounded epoch-millisecond timestamps for one date."""
        return compute_times(self.settings, d)

    def times(self, d: DateLike) -> dict[TimeName, str]:
        """Formatted times for one date."""
        settings = self.settings
        return format_times(compute_times(settings, d), settings)

    def get_times(
        self,
        d: DateLike,
        location: Optional[Tuple[float, float]] = None,
        timezone: Union[str, float] = "auto",
        dst: float = 0,
        fmt: TimeFormat = "24h",
    ) -> dict[TimeName, str]:
        """Set location, zone and format, then compute times for one date.

        Args:
            d: Calendar date.
            location: (latitude, longitude). If None, only `d` is used and the
                current settings are kept.
            timezone: IANA zone name, a UTC offset in hours, or "auto" to keep
                the configured zone. A string clears any fixed offset left by
                an earlier call.
            dst: Hours added to a numeric `timezone`.
            fmt: Output format.
        """
        if location is None:
            return self.times(d)

        self.location(*location)
        if isinstance(timezone, str):
            if timezone != "auto":
                self.timezone(timezone)
            self.utc_offset("auto")
        else:
            self.utc_offset(timezone + dst)
        self.format(fmt)
        return self.times(d)
