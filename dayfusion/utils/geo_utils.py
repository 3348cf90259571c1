"""Geographic helpers for place records.

Pure computations on latitude/longitude pairs; no I/O.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Tuple

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two decimal-degree points."""
    lat1, lon1, lat2, lon2 = map(math.radians, (lat1, lon1, lat2, lon2))
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def coordinates_of(place: Mapping[str, Any]) -> Optional[Tuple[float, float]]:
    """Extract (latitude, longitude) from a place record.

    Args:
        place: Any mapping-like record with ``latitude`` / ``longitude`` fields.

    Returns:
        Coordinate tuple, or None if either value is missing or non-numeric.
    """
    lat = place.get("latitude")
    lon = place.get("longitude")
    try:
        return float(lat), float(lon)
    except (TypeError, ValueError):
        return None


def place_identifier(place: Mapping[str, Any]) -> Optional[str]:
    """Return a stable identifier for a visited place.

    Named places use their name; unnamed places fall back to ``"lat,lon"``.
    """
    name = place.get("name")
    if name:
        return str(name)
    coords = coordinates_of(place)
    if coords is None:
        return None
    return f"{coords[0]},{coords[1]}"
