"""
Settings resolution: defaults -> method preset -> user adjustments -> location/format.

Each layer overrides the previous one field by field; unspecified fields are
inherited. The result is an immutable EffectiveSettings.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from .errors import ConfigurationError
from .methods import CUSTOM, CUSTOM_BASE, DEFAULTS, get_method
from .models import (
    Angle,
    EffectiveSettings,
    Location,
    MethodParams,
    Minutes,
    TimeFormat,
)

logger = logging.getLogger(__name__)

ASR_SCHOOLS = {"Standard": 1.0, "Hanafi": 2.0}

# Hours are accepted below this magnitude, minutes at or above it.
UTC_OFFSET_HOURS_LIMIT = 16

_NUMBER_RE = re.compile(
    r"^\s*(?P<value>[+-]?(?:\d+(?:\.\d*)?|\.\d+))\s*(?P<unit>min(?:ute)?s?)?\s*$",
    re.IGNORECASE,
)

BASE_SETTINGS: dict[str, Any] = {
    "dhuhr_minutes": 0.0,
    "asr_factor": 1.0,
    "high_lats": "NightMiddle",
    "tune": {},
    "rounding": "nearest",
    "time_format": "24h",
    "utc_offset": "auto",
    "timezone": "UTC",
    "location": Location(latitude_deg=0.0, longitude_deg_east=0.0),
    "iterations": 1,
}

_ADJUSTABLE = ("fajr", "dhuhr", "asr", "maghrib", "isha", "midnight", "high_lats")


def _match_number(value: Any, what: str) -> tuple[float, bool]:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid {what} {value!r}")
    if isinstance(value, (int, float)):
        return float(value), False
    if isinstance(value, str):
        m = _NUMBER_RE.match(value)
        if m:
            return float(m.group("value")), m.group("unit") is not None
    raise ConfigurationError(f"Invalid {what} {value!r}")


def parse_angle(value: Union[float, str]) -> float:
    """Parse a plain angle in degrees (number or numeric string)."""
    number, is_minutes = _match_number(value, "angle")
    if is_minutes:
        raise ConfigurationError(f"Expected an angle in degrees, got {value!r}")
    return number


def parse_minutes(value: Union[float, str]) -> float:
    """Parse a minute count given as a number, "5" or "5 min"."""
    number, _ = _match_number(value, "minutes")
    return number


def parse_twilight(value: Union[float, str, Angle, Minutes]) -> Union[Angle, Minutes]:
    """Parse a Maghrib/Isha setting: a number is an angle, "N min" is minutes."""
    if isinstance(value, (Angle, Minutes)):
        return value
    number, is_minutes = _match_number(value, "angle or minutes")
    if is_minutes:
        return Minutes(minutes=number)
    return Angle(degrees=number)


def parse_asr(value: Union[float, str]) -> float:
    """Resolve an Asr rule to a shadow factor.

    Args:
        value: "Standard" (1), "Hanafi" (2), or a numeric shadow factor.

    Raises:
        ConfigurationError: For any other string or a non-positive factor.
    """
    if isinstance(value, str) and value in ASR_SCHOOLS:
        return ASR_SCHOOLS[value]
    factor, is_minutes = _match_number(value, "asr rule")
    if is_minutes or factor <= 0:
        raise ConfigurationError(f"Invalid asr rule {value!r}")
    return factor


def parse_utc_offset(value: Union[float, str]) -> Union[float, str]:
    """Normalize a UTC offset to minutes; small magnitudes are read as hours."""
    if value == "auto":
        return "auto"
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"Invalid utc offset {value!r}")
    if abs(value) < UTC_OFFSET_HOURS_LIMIT:
        return float(value) * 60.0
    return float(value)


def parse_tune(items: Iterable[str]) -> dict[str, float]:
    """Parse "NAME=MINUTES" items into a tuning mapping."""
    out: dict[str, float] = {}
    for item in items:
        name, sep, minutes = item.partition("=")
        if not sep:
            raise ConfigurationError(f"Expected NAME=MINUTES, got {item!r}")
        try:
            out[name.strip().lower()] = float(minutes)
        except ValueError:
            raise ConfigurationError(f"Invalid tuning minutes in {item!r}")
    return out


def _validated(factory, **kwargs):
    try:
        return factory(**kwargs)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


class SettingsBuilder:
    """Layered, chainable construction of EffectiveSettings.

    Example:
        settings = (
            SettingsBuilder("ISNA")
            .location(43.0, -80.0)
            .timezone("America/Toronto")
            .adjust(asr="Hanafi")
            .build()
        )
    """

    def __init__(self, method: str = "MWL") -> None:
        self._values: dict[str, Any] = dict(BASE_SETTINGS)
        self.method(method)

    def copy(self) -> SettingsBuilder:
        other = SettingsBuilder.__new__(SettingsBuilder)
        other._values = dict(self._values)
        return other

    def method(self, name: str) -> SettingsBuilder:
        base = CUSTOM_BASE if name == CUSTOM else name
        preset = get_method(base)
        self._apply(get_method(DEFAULTS).params)
        self._apply(preset.params)
        logger.debug("Applied calculation method %s (%s)", name, preset.label)
        return self

    def adjust(self, **params: Any) -> SettingsBuilder:
        """Override method parameters.

        Accepted keys: fajr (angle), dhuhr (minutes after noon), asr (school or
        shadow factor), maghrib and isha (angle or "N min"), midnight
        ("Standard" or "Jafari"), high_lats.
        """
        unknown = set(params) - set(_ADJUSTABLE)
        if unknown:
            raise ConfigurationError(f"Unknown parameters: {sorted(unknown)}")

        parsed: dict[str, Any] = {}
        for key, value in params.items():
            if value is None:
                continue
            if key == "fajr":
                parsed[key] = parse_angle(value)
            elif key == "dhuhr":
                parsed[key] = parse_minutes(value)
            elif key == "asr":
                parsed[key] = parse_asr(value)
            elif key in ("maghrib", "isha"):
                parsed[key] = parse_twilight(value)
            else:
                parsed[key] = value
        self._apply(_validated(MethodParams, **parsed))
        return self

    def location(
        self, latitude: Union[float, Location], longitude: Optional[float] = None
    ) -> SettingsBuilder:
        if isinstance(latitude, Location):
            self._values["location"] = latitude
        else:
            self._values["location"] = _validated(
                Location, latitude_deg=latitude, longitude_deg_east=longitude
            )
        return self

    def timezone(self, name: str) -> SettingsBuilder:
        self._values["timezone"] = name
        return self

    def utc_offset(self, offset: Union[float, str] = "auto") -> SettingsBuilder:
        self._values["utc_offset"] = parse_utc_offset(offset)
        if offset != "auto":
            self._values["timezone"] = "UTC"
        return self

    def tune(self, minutes: Mapping[str, float]) -> SettingsBuilder:
        self._values["tune"] = dict(minutes)
        return self

    def round(self, rounding: str = "nearest") -> SettingsBuilder:
        self._values["rounding"] = rounding
        return self

    def format(self, time_format: TimeFormat) -> SettingsBuilder:
        self._values["time_format"] = time_format
        return self

    def iterations(self, count: int) -> SettingsBuilder:
        self._values["iterations"] = count
        return self

    def build(self) -> EffectiveSettings:
        return _validated(EffectiveSettings, **self._values)

    def _apply(self, params: MethodParams) -> None:
        for key, value in params.model_dump(exclude_none=True).items():
            if key == "dhuhr":
                self._values["dhuhr_minutes"] = value
            elif key == "asr":
                self._values["asr_factor"] = value
            else:
                # keep the Angle/Minutes instances rather than their dumps
                self._values[key] = getattr(params, key)


def resolve_settings(
    method: str = "MWL",
    *,
    location: Optional[Union[Location, tuple[float, float]]] = None,
    timezone: Optional[str] = None,
    utc_offset: Optional[Union[float, str]] = None,
    tune: Optional[Mapping[str, float]] = None,
    rounding: Optional[str] = None,
    time_format: Optional[TimeFormat] = None,
    iterations: Optional[int] = None,
    **adjustments: Any,
) -> EffectiveSettings:
    """Resolve a method name plus overrides into EffectiveSettings in one call.

    Raises:
        UnknownMethodError: If `method` is not a preset name or "custom".
        ConfigurationError: For malformed overrides.
    """
    b = SettingsBuilder(method)
    if adjustments:
        b.adjust(**adjustments)
    if location is not None:
        if isinstance(location, Location):
            b.location(location)
        else:
            b.location(*location)
    if timezone is not None:
        b.timezone(timezone)
    if utc_offset is not None:
        b.utc_offset(utc_offset)
    if tune is not None:
        b.tune(tune)
    if rounding is not None:
        b.round(rounding)
    if time_format is not None:
        b.format(time_format)
    if iterations is not None:
        b.iterations(iterations)
    return b.build()
