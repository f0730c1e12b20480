"""
Aircraft metadata records.

Reads per-aircraft JSON documents from an object store (S3-compatible bucket
in production, SQL table locally).
"""

from flightalert.records.object_store import (
    ObjectStore,
    S3ObjectStore,
    DatabaseObjectStore,
    create_object_store,
)
from flightalert.records.aircraft_db import AircraftRecordSource, record_key

__all__ = [
    'ObjectStore',
    'S3ObjectStore',
    'DatabaseObjectStore',
    'create_object_store',
    'AircraftRecordSource',
    'record_key',
]
