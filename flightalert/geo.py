"""
Distance and containment helpers.

Scalar functions are used for single checks; circle_mask evaluates a whole
upstream batch with NumPy, which matters when /states/all returns several
thousand reports per poll.

The containment tests fail closed: malformed input yields False rather than
an exception.
"""

import math
from typing import Any, Optional, Sequence

import numpy as np

from flightalert.models.region import MapBounds, Region

EARTH_RADIUS_MILES = 3959.0


def distance_miles(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points in statute miles.

    Uses the Haversine formula. NaN inputs propagate as NaN.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    if a > 1.0:
        a = 1.0  # rounding near antipodes
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_MILES * c


def _finite(*values: Any) -> bool:
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return True


def point_in_circle(lat: Any, lon: Any, region: Optional[Region]) -> bool:
    """True iff (lat, lon) lies within region.radius_miles of the center."""
    try:
        center_lat = region.center.lat
        center_lon = region.center.lon
        radius = region.radius_miles
    except AttributeError:
        return False

    if not _finite(lat, lon, center_lat, center_lon, radius):
        return False

    return distance_miles(center_lat, center_lon, lat, lon) <= radius


def point_in_bounds(lat: Any, lon: Any, bounds: Optional[MapBounds]) -> bool:
    """
    True iff (lat, lon) lies inside the viewport.

    When west > east the box wraps the antimeridian and is treated as the
    union of [west, 180] and [-180, east].
    """
    try:
        north, south, east, west = bounds.north, bounds.south, bounds.east, bounds.west
    except AttributeError:
        return False

    if not _finite(lat, lon, north, south, east, west):
        return False

    if lat < south or lat > north:
        return False

    if west <= east:
        return west <= lon <= east
    return lon >= west or lon <= east


def circle_mask(
    lats: Sequence[Optional[float]],
    lons: Sequence[Optional[float]],
    region: Optional[Region],
) -> np.ndarray:
    """
    Vectorised point_in_circle over a batch of positions.

    Missing (None) or non-finite positions map to False, as does a malformed
    region. Returns a boolean array aligned with the inputs.
    """
    count = len(lats)
    try:
        center_lat = region.center.lat
        center_lon = region.center.lon
        radius = region.radius_miles
    except AttributeError:
        return np.zeros(count, dtype=bool)

    if count == 0 or not _finite(center_lat, center_lon, radius):
        return np.zeros(count, dtype=bool)

    lat = np.array([v if _finite(v) else np.nan for v in lats], dtype=float)
    lon = np.array([v if _finite(v) else np.nan for v in lons], dtype=float)

    lat1 = math.radians(center_lat)
    lat2 = np.radians(lat)
    delta_lat = lat2 - lat1
    delta_lon = np.radians(lon - center_lon)

    a = (
        np.sin(delta_lat / 2) ** 2 +
        math.cos(lat1) * np.cos(lat2) *
        np.sin(delta_lon / 2) ** 2
    )
    a = np.minimum(a, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    distances = EARTH_RADIUS_MILES * c

    # NaN compares False, so missing positions drop out here
    with np.errstate(invalid='ignore'):
        return distances <= radius


def offset_position(
    lat: float,
    lon: float,
    distance: float,
    bearing_deg: float,
) -> tuple:
    """
    Move `distance` miles from (lat, lon) along a compass bearing.

    Great-circle destination on the same sphere as distance_miles, so the
    point lies exactly `distance` miles away (below half the circumference).
    The result stays within [-90, 90] latitude and [-180, 180) longitude.
    """
    lat1 = math.radians(lat)
    lon1 = math.radians(lon)
    bearing = math.radians(bearing_deg)
    angular = distance / EARTH_RADIUS_MILES

    sin_lat2 = (
        math.sin(lat1) * math.cos(angular) +
        math.cos(lat1) * math.sin(angular) * math.cos(bearing)
    )
    lat2 = math.asin(max(-1.0, min(1.0, sin_lat2)))
    lon2 = lon1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )

    lon_deg = (math.degrees(lon2) + 180.0) % 360.0 - 180.0
    return (math.degrees(lat2), lon_deg)
