"""
Data models for FlightAlert.

Plain value types for regions, viewports, flights and aircraft records,
plus the SQLAlchemy table behind the local object store.
"""

from flightalert.models.aircraft import AircraftRecord
from flightalert.models.base import Base, make_engine, make_session_factory, init_db
from flightalert.models.flight import StateVector, EnrichedFlight
from flightalert.models.region import Center, Region, MapBounds
from flightalert.models.stored_object import StoredObject

__all__ = [
    'AircraftRecord',
    'Base',
    'make_engine',
    'make_session_factory',
    'init_db',
    'StateVector',
    'EnrichedFlight',
    'Center',
    'Region',
    'MapBounds',
    'StoredObject',
]
