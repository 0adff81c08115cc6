"""
Degree-based trigonometry and the low-precision solar position model.

The solar coordinates follow the USNO approximation, good to about a minute
of time between 1950 and 2050.
"""

from __future__ import annotations

import math

from .models import SunPosition

RAD = math.pi / 180.0

# Days from the Unix epoch to J2000.0 (2000-01-01 12:00 UTC).
UNIX_DAYS_AT_J2000 = 10957.5


def mod(a: float, b: float) -> float:
    return a % b


def sin(d: float) -> float:
    return math.sin(d * RAD)


def cos(d: float) -> float:
    return math.cos(d * RAD)


def tan(d: float) -> float:
    return math.tan(d * RAD)


def arcsin(x: float) -> float:
    return math.asin(x) / RAD


def arccos(x: float) -> float:
    # Outside [-1, 1] the sun never reaches the requested altitude.
    if not -1.0 <= x <= 1.0:
        return math.nan
    return math.acos(x) / RAD


def arctan2(y: float, x: float) -> float:
    return math.atan2(y, x) / RAD


def arccot(x: float) -> float:
    return math.atan(1.0 / x) / RAD


def solar_coordinates(days_since_j2000: float) -> SunPosition:
    """Sun declination and equation of time.

    Args:
        days_since_j2000: Days (UT) elapsed since J2000.0.

    Returns:
        SunPosition with declination in degrees and equation of time in hours.
    """
    D = days_since_j2000

    g = mod(357.529 + 0.98560028 * D, 360.0)
    q = mod(280.459 + 0.98564736 * D, 360.0)
    L = mod(q + 1.915 * sin(g) + 0.020 * sin(2.0 * g), 360.0)
    e = 23.439 - 0.00000036 * D
    RA = mod(arctan2(cos(e) * sin(L), cos(L)) / 15.0, 24.0)

    return SunPosition(
        declination=arcsin(sin(e) * sin(L)),
        equation=q / 15.0 - RA,
    )
