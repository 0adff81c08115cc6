from __future__ import annotations

from .astro import arctan2, cos, mod, sin
from .models import Location

KAABA = Location(latitude_deg=21.422487, longitude_deg_east=39.826206)


def qibla_direction(loc: Location) -> float:
    """Initial great-circle bearing from `loc` to the Kaaba.

    Returns:
        Degrees clockwise from true north, in [0, 360).
    """
    d_lon = KAABA.longitude_deg_east - loc.longitude_deg_east
    y = sin(d_lon) * cos(KAABA.latitude_deg)
    x = cos(loc.latitude_deg) * sin(KAABA.latitude_deg) - sin(loc.latitude_deg) * cos(
        KAABA.latitude_deg
    ) * cos(d_lon)
    return mod(arctan2(y, x) + 360.0, 360.0)
