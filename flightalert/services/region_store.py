"""
Holder for the current monitoring region.

The region is an immutable value replaced as a whole, so readers see
either the old region or the new one, never a mix.
"""

import logging
import threading
from typing import Any, Optional, Tuple, Union

import geocoder

from flightalert.models import Center, Region

logger = logging.getLogger(__name__)


class RegionStore:
    """Process-wide monitoring region."""

    def __init__(self, initial: Region):
        self._region = initial.validate()
        self._lock = threading.RLock()

    def get(self) -> Region:
        with self._lock:
            return self._region

    def set(self, value: Union[Region, Any]) -> Region:
        """
        Replace the region.

        Accepts a Region or a request payload. Raises ValidationError on
        invalid input, leaving the current region in place.
        """
        if isinstance(value, Region):
            region = value.validate()
        else:
            region = Region.from_payload(value)

        with self._lock:
            self._region = region

        logger.info(
            f'Monitoring region set to ({region.center.lat:.4f}, {region.center.lon:.4f}) '
            f'radius {region.radius_miles} mi'
        )
        return region


def detect_center() -> Optional[Tuple[float, float]]:
    """Best-effort IP geolocation of the host, or None."""
    try:
        g = geocoder.ip('me')
        if g.ok and g.latlng:
            logger.info(f'Auto-detected location: {tuple(g.latlng)} ({g.city}, {g.country})')
            return (float(g.latlng[0]), float(g.latlng[1]))
    except Exception as e:
        logger.warning(f'Location auto-detect failed: {e}')
    return None


def initial_region(center: Tuple[float, float], radius_miles: float, auto_detect: bool = False) -> Region:
    """Region the process starts with."""
    if auto_detect:
        center = detect_center() or center
    return Region(center=Center(lat=center[0], lon=center[1]), radius_miles=radius_miles)
