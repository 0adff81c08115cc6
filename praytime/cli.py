"""
Command-line interface for prayer time calculations.
"""

from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import Optional

from astropy.time import Time

from . import month_schedule
from .compute import compute_times
from .errors import ConfigurationError
from .formatting import format_times
from .methods import CUSTOM, list_methods, method_names
from .models import TIME_NAMES, EffectiveSettings
from .qibla import qibla_direction
from .settings import SettingsBuilder, parse_tune


def print_times(label: str, times: dict[str, str]) -> None:
    print(label)
    for name in TIME_NAMES:
        print(f"  {name.capitalize():<9} {times[name]}")


def print_month(year: int, month: int, settings: EffectiveSettings) -> None:
    print("date        " + " ".join(f"{n.capitalize():<9}" for n in TIME_NAMES))
    for row in month_schedule(year, month, settings):
        print(f"{row.date_iso}  " + " ".join(f"{row.times[n]:<9}" for n in TIME_NAMES))


def print_methods() -> None:
    for m in list_methods():
        print(f"{m.name:<10} {m.label}")


def build_settings(args: argparse.Namespace) -> EffectiveSettings:
    b = SettingsBuilder(args.method)
    b.adjust(
        fajr=args.fajr,
        dhuhr=args.dhuhr,
        asr=args.asr,
        maghrib=args.maghrib,
        isha=args.isha,
        midnight=args.midnight,
        high_lats=args.high_lats,
    )
    b.location(args.lat, args.lon)
    b.timezone(args.tz)
    if args.utc_offset is not None:
        b.utc_offset(args.utc_offset)
    b.tune(parse_tune(args.tune))
    b.round(args.rounding)
    b.format(args.format)
    b.iterations(args.iterations)
    return b.build()


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(
        description="Compute Islamic prayer times for a location and date."
    )
    ap.add_argument(
        "--lat", type=float, help="Latitude in degrees (north positive)"
    )
    ap.add_argument(
        "--lon",
        type=float,
        help="Longitude in degrees east (east positive; west is negative)",
    )
    ap.add_argument(
        "--date",
        default=None,
        help="Calendar date YYYY-MM-DD. Default: today (UTC).",
    )
    ap.add_argument(
        "--method",
        default="MWL",
        choices=method_names() + [CUSTOM],
        help="Calculation method (default: MWL)",
    )
    ap.add_argument("--tz", default="UTC", help="IANA timezone (default: UTC)")
    ap.add_argument(
        "--utc-offset",
        type=float,
        default=None,
        help="Fixed UTC offset in hours (or minutes if 16 or more); overrides --tz",
    )
    ap.add_argument("--format", default="24h", choices=["24h", "12h", "12H", "x", "X"])
    ap.add_argument(
        "--rounding", default="nearest", choices=["nearest", "up", "down", "none"]
    )
    ap.add_argument("--fajr", default=None, help="Fajr twilight angle")
    ap.add_argument("--dhuhr", default=None, help="Minutes after solar noon")
    ap.add_argument("--asr", default=None, help="Standard, Hanafi, or shadow factor")
    ap.add_argument("--maghrib", default=None, help='Angle, or minutes as "N min"')
    ap.add_argument("--isha", default=None, help='Angle, or minutes as "N min"')
    ap.add_argument("--midnight", default=None, choices=["Standard", "Jafari"])
    ap.add_argument(
        "--high-lats",
        default=None,
        choices=["NightMiddle", "OneSeventh", "AngleBased", "None"],
    )
    ap.add_argument(
        "--tune",
        action="append",
        default=[],
        metavar="NAME=MINUTES",
        help="Per-time offset in minutes (repeatable)",
    )
    ap.add_argument("--iterations", type=int, default=1)
    ap.add_argument(
        "--month", action="store_true", help="Print the whole month of --date"
    )
    ap.add_argument("--qibla", action="store_true", help="Print the qibla bearing")
    ap.add_argument(
        "--list-methods", action="store_true", help="List calculation methods and exit"
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.list_methods:
        print_methods()
        return

    if args.lat is None or args.lon is None:
        ap.error("--lat and --lon are required")

    if args.date is None:
        ref_time = Time.now()
        print(f"date not provided; using today: {ref_time.iso[:10]}")
    else:
        try:
            ref_time = Time(args.date, scale="utc")
        except ValueError as exc:
            ap.error(f"invalid --date {args.date!r}: {exc}")
    dt = ref_time.to_datetime()
    d = date(dt.year, dt.month, dt.day)

    try:
        settings = build_settings(args)
    except ConfigurationError as exc:
        ap.error(str(exc))

    loc = settings.location
    print(
        f"Location: lat={loc.latitude_deg:.6f}, lon_east={loc.longitude_deg_east:.6f}, tz={settings.timezone}"
    )
    print(f"Method: {args.method}")

    if args.qibla:
        print(f"Qibla: {qibla_direction(loc):.2f} deg from true north")

    if args.month:
        print_month(d.year, d.month, settings)
    else:
        print_times(d.isoformat(), format_times(compute_times(settings, d), settings))


if __name__ == "__main__":
    main()
