"""
Web API for prayer time calculations.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from astropy.time import Time
from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel

from . import month_schedule
from .compute import compute_times
from .errors import ConfigurationError
from .formatting import format_times
from .methods import list_methods
from .models import DaySchedule, EffectiveSettings, Location
from .qibla import qibla_direction
from .settings import SettingsBuilder, parse_tune

app = FastAPI(title="Prayer Times")


class MethodInfo(BaseModel):
    name: str
    label: str


class TimesResponse(BaseModel):
    lat: float
    lon: float
    date: str
    method: str
    timezone: str
    times: dict[str, str]


class MonthResponse(BaseModel):
    lat: float
    lon: float
    year: int
    month: int
    method: str
    timezone: str
    days: list[DaySchedule]


class QiblaResponse(BaseModel):
    lat: float
    lon: float
    bearing_deg: float


def _settings(
    lat: float,
    lon: float,
    method: str = "MWL",
    timezone: str = "UTC",
    utc_offset: Optional[float] = None,
    format: str = "24h",
    rounding: str = "nearest",
    fajr: Optional[str] = None,
    dhuhr: Optional[str] = None,
    asr: Optional[str] = None,
    maghrib: Optional[str] = None,
    isha: Optional[str] = None,
    midnight: Optional[str] = None,
    high_lats: Optional[str] = None,
    tune: list[str] = Query(default=[], description="NAME=MINUTES, repeatable"),
    iterations: int = 1,
) -> EffectiveSettings:
    try:
        b = SettingsBuilder(method)
        b.adjust(
            fajr=fajr,
            dhuhr=dhuhr,
            asr=asr,
            maghrib=maghrib,
            isha=isha,
            midnight=midnight,
            high_lats=high_lats,
        )
        b.location(lat, lon).timezone(timezone)
        if utc_offset is not None:
            b.utc_offset(utc_offset)
        b.tune(parse_tune(tune))
        b.iterations(iterations)
        return b.round(rounding).format(format).build()
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _parse_date(value: Optional[str]) -> date:
    try:
        ref_time = Time(value, scale="utc") if value else Time.now()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid date {value!r}: {exc}")
    dt = ref_time.to_datetime()
    return date(dt.year, dt.month, dt.day)


@app.get("/api/methods")
def get_methods() -> list[MethodInfo]:
    return [MethodInfo(name=m.name, label=m.label) for m in list_methods()]


@app.get("/api/times")
def get_times(
    lat: float,
    lon: float,
    date: Optional[str] = None,
    method: str = "MWL",
    settings: EffectiveSettings = Depends(_settings),
) -> TimesResponse:
    d = _parse_date(date)
    return TimesResponse(
        lat=lat,
        lon=lon,
        date=d.isoformat(),
        method=method,
        timezone=settings.timezone,
        times=format_times(compute_times(settings, d), settings),
    )


@app.get("/api/month")
def get_month(
    lat: float,
    lon: float,
    year: int,
    month: int,
    method: str = "MWL",
    settings: EffectiveSettings = Depends(_settings),
) -> MonthResponse:
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail=f"Invalid month {month}")
    return MonthResponse(
        lat=lat,
        lon=lon,
        year=year,
        month=month,
        method=method,
        timezone=settings.timezone,
        days=month_schedule(year, month, settings),
    )


@app.get("/api/qibla")
def get_qibla(lat: float, lon: float) -> QiblaResponse:
    try:
        loc = Location(latitude_deg=lat, longitude_deg_east=lon)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return QiblaResponse(lat=lat, lon=lon, bearing_deg=qibla_direction(loc))


def run():
    import uvicorn

    uvicorn.run("praytime.web:app", host="127.0.0.1", port=8000, reload=True)
