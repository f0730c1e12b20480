"""
Pytest configuration and shared fixtures for the FlightAlert gateway.
"""

import os

# Set environment variables BEFORE importing the app
os.environ.setdefault('RECORD_STORE_BACKEND', 'database')
os.environ.setdefault('RECORD_STORE_DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('USE_SYNTHETIC_DATA', '0')
os.environ.setdefault('REGION_AUTODETECT', '0')

import json
import threading

import pytest

from flightalert.app import create_app
from flightalert.cache import AircraftRecordCache, SnapshotCache
from flightalert.errors import StoreLookupError
from flightalert.models import Center, Region, StateVector
from flightalert.records import AircraftRecordSource, ObjectStore, record_key
from flightalert.services import FlightGateway, RateLimiter, RegionStore
from flightalert.services.rate_limiter import MAP_CHANGE, NORMAL

PHOENIX = (33.481252177897346, -111.70670272771451)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryStore(ObjectStore):
    """Dict-backed object store that counts reads."""

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.reads = []
        self.failing = set()
        self._lock = threading.Lock()

    def add_record(self, icao24: str, **fields) -> None:
        fields.setdefault('icao24', icao24)
        self.objects[record_key(icao24)] = json.dumps(fields).encode('utf-8')

    def get(self, key):
        with self._lock:
            self.reads.append(key)
        if key in self.failing:
            raise StoreLookupError('simulated outage', key=key)
        return self.objects.get(key)

    def list(self, prefix=''):
        return sorted(k for k in self.objects if k.startswith(prefix))


class FakeFeed:
    """Stands in for OpenSkyClient."""

    def __init__(self, states=None, configured=True):
        self.states = list(states or [])
        self.error = None
        self.is_configured = configured
        self.calls = 0

    def get_states(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return 1_700_000_000, list(self.states)


def build_state(icao24, lat, lon, on_ground=False, callsign=None, **overrides):
    fields = dict(
        icao24=icao24,
        callsign=callsign or icao24.upper(),
        origin_country='United States',
        time_position=1_700_000_000,
        last_contact=1_700_000_000,
        latitude=lat,
        longitude=lon,
        baro_altitude=3048.0,
        on_ground=on_ground,
        velocity=120.0,
        true_track=90.0,
        vertical_rate=0.0,
    )
    fields.update(overrides)
    return StateVector(**fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_state():
    return build_state


@pytest.fixture
def region():
    return Region(center=Center(lat=PHOENIX[0], lon=PHOENIX[1]), radius_miles=3.0)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def feed():
    return FakeFeed()


@pytest.fixture
def record_cache(memory_store, clock):
    return AircraftRecordCache(
        AircraftRecordSource(memory_store),
        ttl_seconds=3600,
        max_entries=1000,
        eviction_fraction=0.1,
        workers=4,
        clock=clock,
    )


@pytest.fixture
def gateway(region, feed, record_cache, clock):
    return FlightGateway(
        region_store=RegionStore(region),
        rate_limiter=RateLimiter(
            intervals={NORMAL: 30, MAP_CHANGE: 3},
            min_seconds=1,
            max_seconds=300,
            clock=clock,
        ),
        feed=feed,
        record_cache=record_cache,
        snapshot_cache=SnapshotCache(ttl_seconds=30, bounds_tolerance=1.0, clock=clock),
        max_flights=50,
    )


@pytest.fixture
def app(gateway):
    app = create_app(gateway=gateway)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
