"""
Data models for prayer time calculations.

Times inside a TimeTable are fractional hours since UTC midnight of the
requested date until conversion, and epoch milliseconds afterwards.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Callable, Literal, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

TimeName = Literal[
    "fajr", "sunrise", "dhuhr", "asr", "sunset", "maghrib", "isha", "midnight"
]
TIME_NAMES: tuple[TimeName, ...] = (
    "fajr",
    "sunrise",
    "dhuhr",
    "asr",
    "sunset",
    "maghrib",
    "isha",
    "midnight",
)

HighLatitudeRule = Literal["NightMiddle", "OneSeventh", "AngleBased", "None"]
MidnightRule = Literal["Standard", "Jafari"]
RoundingRule = Literal["nearest", "up", "down", "none"]
TimeFormatName = Literal["24h", "12h", "12H", "x", "X"]
TimeFormat = Union[TimeFormatName, Callable[[float], str]]


class Location(BaseModel):
    """A geographic location on Earth."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    latitude_deg: float = Field(..., ge=-90.0, le=90.0)
    longitude_deg_east: float = Field(..., ge=-180.0, le=180.0)


class Angle(BaseModel):
    """Sun depression below the horizon, in degrees."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["angle"] = "angle"
    degrees: float


class Minutes(BaseModel):
    """Fixed interval after the preceding anchor time (Sunset or Maghrib)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["minutes"] = "minutes"
    minutes: float


Twilight = Annotated[Union[Angle, Minutes], Field(discriminator="kind")]


class MethodParams(BaseModel):
    """A partial parameter set. Unset fields are inherited from lower layers."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    fajr: Optional[float] = None
    isha: Optional[Twilight] = None
    maghrib: Optional[Twilight] = None
    midnight: Optional[MidnightRule] = None
    dhuhr: Optional[float] = None  # minutes after solar noon
    asr: Optional[float] = Field(default=None, gt=0.0)  # shadow factor
    high_lats: Optional[HighLatitudeRule] = None


class CalculationMethod(BaseModel):
    """A named, read-only calculation preset."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    label: str
    params: MethodParams


class EffectiveSettings(BaseModel):
    """Fully resolved configuration for one computation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    fajr: float
    isha: Twilight
    maghrib: Twilight
    midnight: MidnightRule
    dhuhr_minutes: float
    asr_factor: float = Field(..., gt=0.0)
    high_lats: HighLatitudeRule
    tune: dict[TimeName, float] = Field(default_factory=dict)
    rounding: RoundingRule
    time_format: TimeFormat
    utc_offset: Union[float, Literal["auto"]]  # minutes east of UTC
    timezone: str
    location: Location
    iterations: int = Field(default=1, ge=1)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone {v!r}") from exc
        return v


class SunPosition(BaseModel):
    """Solar declination (degrees) and equation of time (hours)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    declination: float
    equation: float


class TimeTable(BaseModel):
    """Scratch table refined in place by the solver stages."""

    model_config = ConfigDict(extra="forbid")

    fajr: float = 5.0
    sunrise: float = 6.0
    dhuhr: float = 12.0
    asr: float = 13.0
    sunset: float = 18.0
    maghrib: float = 18.0
    isha: float = 18.0
    midnight: float = 24.0

    def items(self) -> list[tuple[TimeName, float]]:
        return [(name, getattr(self, name)) for name in TIME_NAMES]


class DaySchedule(BaseModel):
    """Formatted times for one calendar day."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    day: date
    times: dict[TimeName, str]

    @property
    def date_iso(self) -> str:
        """Return the date as YYYY-MM-DD."""
        return self.day.isoformat()
