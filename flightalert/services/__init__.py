"""
Services module for FlightAlert.

Rate limiting, region state and the flight gateway that ties the
upstream feed, geofencing and enrichment together.
"""

from flightalert.services.rate_limiter import RateLimiter, NORMAL, MAP_CHANGE
from flightalert.services.region_store import RegionStore
from flightalert.services.flight_gateway import FlightGateway

__all__ = ['RateLimiter', 'NORMAL', 'MAP_CHANGE', 'RegionStore', 'FlightGateway']
