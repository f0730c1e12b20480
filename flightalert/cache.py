"""
In-memory caches for the gateway.

Two caches live here:

- AircraftRecordCache: per-ICAO24 aircraft metadata loaded lazily from the
  object store. Entries live for an hour; a "not found" result is cached too
  so unknown transponders do not hammer the store on every poll.
- SnapshotCache: the last successful multi-flight response and the viewport
  it was computed for. Served for up to 30 seconds when the upstream call is
  skipped or fails, so the map does not flash empty between polls.

Both are thread-safe: Flask serves requests from worker threads and every
read-modify-write happens under the cache's own lock. No lock is held
across store I/O.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from flightalert.config import config
from flightalert.errors import StoreLookupError
from flightalert.geo import point_in_circle
from flightalert.models import AircraftRecord, EnrichedFlight, MapBounds, Region
from flightalert.records.aircraft_db import AircraftRecordSource

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached value plus the time it was stored."""
    data: T
    timestamp: float

    def age(self, now: float) -> float:
        return now - self.timestamp


class AircraftRecordCache:
    """
    On-demand cache of aircraft records.

    Lookups go to the backing source only on miss or expiry. When a new key
    is inserted at capacity, the oldest 10% of entries (by timestamp) are
    evicted first - an approximate LRU that suits the bursty, locality-free
    access of flight enrichment.
    """

    def __init__(
        self,
        source: AircraftRecordSource,
        ttl_seconds: Optional[int] = None,
        max_entries: Optional[int] = None,
        eviction_fraction: Optional[float] = None,
        workers: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None
            else config.cache.record_ttl_seconds
        )
        self.max_entries = (
            max_entries if max_entries is not None
            else config.cache.record_max_entries
        )
        self.eviction_fraction = (
            eviction_fraction if eviction_fraction is not None
            else config.cache.eviction_fraction
        )
        self.workers = workers if workers is not None else config.cache.enrichment_workers
        self.clock = clock

        self._cache: Dict[str, CacheEntry[Optional[AircraftRecord]]] = {}
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0
        self._errors = 0

    def _lookup_cached(self, icao24: str):
        """Return (hit, value) for a fresh cache entry."""
        with self._lock:
            entry = self._cache.get(icao24)
            if entry is not None and entry.age(self.clock()) < self.ttl_seconds:
                self._hits += 1
                return True, entry.data
            self._misses += 1
        return False, None

    def get(self, icao24: str) -> Optional[AircraftRecord]:
        """
        Get the record for an ICAO24 address.

        Returns None when the aircraft is unknown or the store could not be
        read. Store failures are not cached; the next lookup retries.
        """
        if not icao24:
            return None
        icao24 = icao24.strip().lower()

        hit, value = self._lookup_cached(icao24)
        if hit:
            return value

        try:
            record = self.source.fetch(icao24)
        except StoreLookupError as e:
            with self._lock:
                self._errors += 1
            logger.warning(f'Aircraft record lookup failed for {icao24}: {e}')
            return None

        self._set(icao24, record)
        return record

    def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[AircraftRecord]]:
        """
        Look up several aircraft in parallel.

        All lookups are joined before returning, so the added latency is that
        of the slowest single lookup. Failed lookups map to None.
        """
        unique = list(dict.fromkeys(k.strip().lower() for k in keys if k))
        if not unique:
            return {}
        if len(unique) == 1:
            return {unique[0]: self.get(unique[0])}

        with ThreadPoolExecutor(max_workers=min(self.workers, len(unique))) as executor:
            results = list(executor.map(self.get, unique))
        return dict(zip(unique, results))

    def _set(self, icao24: str, record: Optional[AircraftRecord]) -> None:
        with self._lock:
            if icao24 not in self._cache and len(self._cache) >= self.max_entries:
                self._evict_oldest()
            self._cache[icao24] = CacheEntry(data=record, timestamp=self.clock())

    def _evict_oldest(self) -> None:
        """Remove the oldest entries by timestamp."""
        entries = sorted(
            self._cache.items(),
            key=lambda x: x[1].timestamp
        )
        to_remove = max(1, int(len(entries) * self.eviction_fraction))
        for icao24, _ in entries[:to_remove]:
            del self._cache[icao24]
        logger.debug(f'Evicted {to_remove} aircraft records from cache')

    def invalidate(self, icao24: str) -> None:
        """Remove specific entry from cache."""
        with self._lock:
            self._cache.pop(icao24.strip().lower(), None)

    def clear(self) -> None:
        """Clear entire cache."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, icao24: str) -> bool:
        with self._lock:
            return icao24.strip().lower() in self._cache

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'entries': len(self._cache),
                'max_entries': self.max_entries,
                'hits': self._hits,
                'misses': self._misses,
                'store_errors': self._errors,
                'hit_rate': self._hits / lookups if lookups > 0 else 0,
            }


@dataclass(frozen=True)
class MapSnapshot:
    """A successful multi-flight result and the viewport it answered."""
    flights: List[EnrichedFlight]
    bounds: Optional[MapBounds]


class SnapshotCache:
    """
    Single-entry cache of the last good map response.

    A snapshot is served only while it is younger than the TTL and, for map
    requests, only when its viewport is similar to the requested one.
    """

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        bounds_tolerance: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None
            else config.cache.snapshot_ttl_seconds
        )
        self.bounds_tolerance = (
            bounds_tolerance if bounds_tolerance is not None
            else config.cache.bounds_tolerance_degrees
        )
        self.clock = clock

        self._entry: Optional[CacheEntry[MapSnapshot]] = None
        self._lock = threading.RLock()

    def store(self, flights: List[EnrichedFlight], bounds: Optional[MapBounds]) -> None:
        with self._lock:
            self._entry = CacheEntry(
                data=MapSnapshot(flights=list(flights), bounds=bounds),
                timestamp=self.clock(),
            )

    def _fresh(self) -> Optional[MapSnapshot]:
        with self._lock:
            entry = self._entry
        if entry is None or entry.age(self.clock()) >= self.ttl_seconds:
            return None
        return entry.data

    def _bounds_match(self, cached: Optional[MapBounds], requested: Optional[MapBounds]) -> bool:
        if cached is None and requested is None:
            return True
        if cached is None or requested is None:
            return False
        return cached.is_similar(requested, self.bounds_tolerance)

    def lookup(self, bounds: Optional[MapBounds]) -> List[EnrichedFlight]:
        """Cached flights for a similar viewport, or an empty list."""
        snapshot = self._fresh()
        if snapshot is None:
            return []
        if not self._bounds_match(snapshot.bounds, bounds):
            logger.debug('Snapshot viewport differs from request, not serving it')
            return []
        return list(snapshot.flights)

    def first_in_region(self, region: Region) -> Optional[EnrichedFlight]:
        """
        First cached flight inside `region`, ignoring viewport.

        Containment is re-checked against the given region rather than
        trusting the in_region flag stored with the snapshot.
        """
        snapshot = self._fresh()
        if snapshot is None:
            return None
        for flight in snapshot.flights:
            if flight.in_region and point_in_circle(flight.state.latitude, flight.state.longitude, region):
                return flight
        return None

    def clear(self) -> None:
        with self._lock:
            self._entry = None

    @property
    def stats(self) -> dict:
        with self._lock:
            entry = self._entry
        if entry is None:
            return {'cached': False}
        return {
            'cached': True,
            'flights': len(entry.data.flights),
            'age_seconds': round(entry.age(self.clock()), 1),
            'bounds': entry.data.bounds.to_dict() if entry.data.bounds else None,
        }
