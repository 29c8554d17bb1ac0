"""Geo utilities: great-circle distance (Haversine) on a spherical Earth."""

import math
from dataclasses import dataclass

# Mean Earth radius per unit
EARTH_RADIUS = {
    "kilometers": 6371.0088,
    "miles": 3958.7613,
}
DEFAULT_UNITS = "kilometers"


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float


def earth_radius(units: str = DEFAULT_UNITS) -> float:
    """Return the Earth's mean radius in the given units."""
    try:
        return EARTH_RADIUS[units]
    except KeyError:
        raise ValueError(f"Unsupported distance units: {units!r}") from None


def haversine_distance(a: GeoPoint, b: GeoPoint, units: str = DEFAULT_UNITS) -> float:
    """
    Compute great-circle distance between two points.
    Uses the Haversine formula; the result is symmetric in (a, b) and 0 for identical points.
    """
    R = earth_radius(units)
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push h just past 1 for near-antipodal points
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return R * c
