"""
Geographic value types - the monitoring region and map viewport bounds.

Both are immutable. The region is replaced wholesale by RegionStore, so a
reader never observes a half-written center or radius.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from flightalert.errors import ValidationError

MAX_RADIUS_MILES = 100.0
DEFAULT_RADIUS_MILES = 3.0


def _is_number(value: Any) -> bool:
    # bool is an int subclass; reject it explicitly
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class Center:
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {'lat': self.lat, 'lon': self.lon}


@dataclass(frozen=True)
class Region:
    """
    Circular geofence: center point plus radius in statute miles.

    Invariants:
        -90 <= center.lat <= 90
        -180 <= center.lon <= 180
        0 < radius_miles <= 100
    """
    center: Center
    radius_miles: float

    def validate(self) -> 'Region':
        """Return self if the invariants hold, else raise ValidationError."""
        lat, lon = self.center.lat, self.center.lon
        if not (_is_number(lat) and _is_number(lon)):
            raise ValidationError('Invalid center: must have lat and lon properties')
        if lat < -90 or lat > 90 or lon < -180 or lon > 180:
            raise ValidationError(
                'Invalid coordinates: lat must be -90 to 90, lon must be -180 to 180'
            )
        if not _is_number(self.radius_miles) or self.radius_miles <= 0 or self.radius_miles > MAX_RADIUS_MILES:
            raise ValidationError('Invalid radius: must be between 0 and 100 miles')
        return self

    @classmethod
    def from_payload(cls, payload: Any) -> 'Region':
        """
        Build a validated Region from a request body.

        Expected shape: {"center": {"lat": .., "lon": ..}, "radiusMiles": ..}
        A missing radius falls back to the 3 mile default.
        """
        if not isinstance(payload, dict):
            raise ValidationError('Request body must be a JSON object')

        center = payload.get('center')
        if not isinstance(center, dict) or not _is_number(center.get('lat')) or not _is_number(center.get('lon')):
            raise ValidationError('Invalid center: must have lat and lon properties')

        radius = payload.get('radiusMiles')
        if radius is None:
            radius = DEFAULT_RADIUS_MILES

        region = cls(
            center=Center(lat=float(center['lat']), lon=float(center['lon'])),
            radius_miles=radius if not _is_number(radius) else float(radius),
        )
        return region.validate()

    def to_dict(self) -> dict:
        return {
            'center': self.center.to_dict(),
            'radiusMiles': self.radius_miles,
        }


@dataclass(frozen=True)
class MapBounds:
    """
    Axis-aligned map viewport in degrees.

    west > east means the viewport crosses the antimeridian.
    """
    north: float
    south: float
    east: float
    west: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    def is_similar(self, other: Optional['MapBounds'], tolerance: float) -> bool:
        """True when every edge is within `tolerance` degrees of `other`."""
        if other is None:
            return False
        return (
            abs(self.north - other.north) <= tolerance
            and abs(self.south - other.south) <= tolerance
            and abs(self.east - other.east) <= tolerance
            and abs(self.west - other.west) <= tolerance
        )

    @classmethod
    def from_args(cls, args) -> Optional['MapBounds']:
        """
        Parse bounds from query parameters.

        Returns None unless all four edges are present and numeric.
        """
        try:
            values = {
                edge: float(args.get(edge))
                for edge in ('north', 'south', 'east', 'west')
            }
        except (TypeError, ValueError):
            return None
        if not all(math.isfinite(v) for v in values.values()):
            return None
        return cls(**values)

    def to_dict(self) -> dict:
        return {
            'north': self.north,
            'south': self.south,
            'east': self.east,
            'west': self.west,
        }
