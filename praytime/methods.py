"""
Calculation method presets.

Angles are twilight depressions in degrees; "N min" entries are minutes after
the preceding time (Sunset for Maghrib, Maghrib for Isha).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from .errors import UnknownMethodError
from .models import Angle, CalculationMethod, MethodParams, Minutes

CUSTOM = "custom"
DEFAULTS = "defaults"

_PRESETS: dict[str, tuple[str, dict[str, Any]]] = {
    "MWL": ("Muslim World League", {"fajr": 18, "isha": Angle(degrees=17)}),
    "ISNA": (
        "Islamic Society of North America",
        {"fajr": 15, "isha": Angle(degrees=15)},
    ),
    "Egypt": (
        "Egyptian General Authority of Survey",
        {"fajr": 19.5, "isha": Angle(degrees=17.5)},
    ),
    "Makkah": (
        "Umm Al-Qura University, Makkah",
        {"fajr": 18.5, "isha": Minutes(minutes=90)},
    ),
    "Karachi": (
        "University of Islamic Sciences, Karachi",
        {"fajr": 18, "isha": Angle(degrees=18)},
    ),
    "Tehran": (
        "Institute of Geophysics, University of Tehran",
        {"fajr": 17.7, "maghrib": Angle(degrees=4.5), "midnight": "Jafari"},
    ),
    "Jafari": (
        "Leva Research Institute, Qom",
        {"fajr": 16, "maghrib": Angle(degrees=4), "midnight": "Jafari"},
    ),
    "France": ("Muslims of France", {"fajr": 12, "isha": Angle(degrees=12)}),
    "Russia": (
        "Spiritual Administration of Muslims of Russia",
        {"fajr": 16, "isha": Angle(degrees=15)},
    ),
    "Singapore": (
        "Islamic Religious Council of Singapore",
        {"fajr": 20, "isha": Angle(degrees=18)},
    ),
    "NU": ("Lembaga Falakiyah NU, Indonesia", {"fajr": 20, "isha": Angle(degrees=18)}),
    "MU": ("Muhammadiyah, Indonesia", {"fajr": 18, "isha": Angle(degrees=18)}),
    DEFAULTS: (
        "Defaults",
        {"isha": Angle(degrees=14), "maghrib": Minutes(minutes=1), "midnight": "Standard"},
    ),
}

# Preset that a custom configuration starts from.
CUSTOM_BASE = "MWL"


def get_method(name: str) -> CalculationMethod:
    """Look up a calculation preset by name.

    Args:
        name: Preset name, e.g. "MWL" or "Makkah". Case-sensitive.

    Returns:
        The CalculationMethod for that name.

    Raises:
        UnknownMethodError: If no preset has that name.
    """
    return _load_methods()[_checked(name)]


def list_methods() -> list[CalculationMethod]:
    """All named presets, excluding the defaults layer."""
    return [m for m in _load_methods().values() if m.name != DEFAULTS]


def method_names() -> list[str]:
    return [m.name for m in list_methods()]


def _checked(name: str) -> str:
    if name not in _PRESETS:
        raise UnknownMethodError(
            f"Unknown calculation method {name!r}. Available: {sorted(method_names())}"
        )
    return name


@lru_cache(maxsize=1)
def _load_methods() -> dict[str, CalculationMethod]:
    return {
        name: CalculationMethod(name=name, label=label, params=MethodParams(**params))
        for name, (label, params) in _PRESETS.items()
    }
