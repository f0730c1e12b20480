"""
API module for FlightAlert.

Provides REST endpoints for:
- Flight lookups (single in-region flight, map list)
- Operator settings (region, rate limit)
- Health and status
"""

from flightalert.api.flights import flights_bp
from flightalert.api.settings import settings_bp
from flightalert.api.status import status_bp

__all__ = ['flights_bp', 'settings_bp', 'status_bp']
