"""
Flight gateway - orchestrates one fetch cycle per request.

Pipeline stages:
1. Gate: ask the RateLimiter whether this request may call upstream
2. Fetch: pull state vectors (OpenSky with bearer token, or synthetic feed)
3. Filter: skip aircraft on the ground, geofence against region/viewport
4. Enrich: attach aircraft records, looked up in parallel
5. Snapshot: remember the last good map result

When the gate is closed or the fetch fails, the last snapshot is served
instead (if fresh and for a similar viewport), so a rate-limited poll does
not look like an empty sky.

The gateway is the single owner of all process-wide state: region, token,
rate-limit timestamps and caches. Every mutation goes through it.
"""

import logging
from typing import Any, List, Optional, Union

from flightalert.cache import AircraftRecordCache, SnapshotCache
from flightalert.config import AppConfig, config as default_config
from flightalert.errors import AuthenticationError, ConfigurationError, UpstreamError
from flightalert.geo import circle_mask, point_in_bounds
from flightalert.models import EnrichedFlight, MapBounds, Region, StateVector
from flightalert.records import AircraftRecordSource, create_object_store
from flightalert.services.rate_limiter import MAP_CHANGE, NORMAL, RateLimiter
from flightalert.services.region_store import RegionStore, initial_region
from flightalert.upstream import OpenSkyClient, SyntheticFeed

logger = logging.getLogger(__name__)


class FlightGateway:
    """
    Answers single-flight and map lookups against the live feed.

    Args:
        region_store: holder of the monitoring region
        rate_limiter: upstream call gate
        feed: object with get_states() -> (timestamp, [StateVector])
        record_cache: aircraft record cache used for enrichment
        snapshot_cache: fallback cache for map responses
        max_flights: cap on flights returned by map_flights
        using_synthetic_data: feed is synthetic; skip gate and credential checks
    """

    def __init__(
        self,
        region_store: RegionStore,
        rate_limiter: RateLimiter,
        feed: Union[OpenSkyClient, SyntheticFeed],
        record_cache: AircraftRecordCache,
        snapshot_cache: SnapshotCache,
        max_flights: Optional[int] = None,
        using_synthetic_data: bool = False,
    ):
        self.region_store = region_store
        self.rate_limiter = rate_limiter
        self.feed = feed
        self.record_cache = record_cache
        self.snapshot_cache = snapshot_cache
        self.max_flights = (
            max_flights if max_flights is not None
            else default_config.gateway.max_map_flights
        )
        self.using_synthetic_data = using_synthetic_data

        # Stats
        self._upstream_calls = 0
        self._upstream_failures = 0
        self._skipped_calls = 0

    @classmethod
    def from_config(cls, app_config: Optional[AppConfig] = None) -> 'FlightGateway':
        """Wire up every component from application configuration."""
        app_config = app_config or default_config

        region_store = RegionStore(initial_region(
            app_config.region.center,
            app_config.region.radius_miles,
            auto_detect=app_config.region.auto_detect,
        ))

        rate_limiter = RateLimiter(
            intervals={
                NORMAL: app_config.rate_limit.steady_interval_seconds,
                MAP_CHANGE: app_config.rate_limit.map_change_interval_seconds,
            },
            min_seconds=app_config.rate_limit.min_seconds,
            max_seconds=app_config.rate_limit.max_seconds,
        )

        synthetic = app_config.gateway.use_synthetic_data
        if synthetic:
            logger.info('Gateway running with SYNTHETIC flight data')
            feed = SyntheticFeed(region_store.get)
        else:
            feed = OpenSkyClient.from_config(app_config.opensky)

        store = create_object_store(app_config.record_store)
        record_cache = AircraftRecordCache(
            AircraftRecordSource(store, prefix=app_config.record_store.key_prefix),
            ttl_seconds=app_config.cache.record_ttl_seconds,
            max_entries=app_config.cache.record_max_entries,
            eviction_fraction=app_config.cache.eviction_fraction,
            workers=app_config.cache.enrichment_workers,
        )
        snapshot_cache = SnapshotCache(
            ttl_seconds=app_config.cache.snapshot_ttl_seconds,
            bounds_tolerance=app_config.cache.bounds_tolerance_degrees,
        )

        return cls(
            region_store=region_store,
            rate_limiter=rate_limiter,
            feed=feed,
            record_cache=record_cache,
            snapshot_cache=snapshot_cache,
            max_flights=app_config.gateway.max_map_flights,
            using_synthetic_data=synthetic,
        )

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    @property
    def region(self) -> Region:
        return self.region_store.get()

    def set_region(self, payload: Any) -> Region:
        """
        Replace the monitoring region; ValidationError leaves it unchanged.

        The map snapshot is dropped: its in_region flags describe the old
        region.
        """
        region = self.region_store.set(payload)
        self.snapshot_cache.clear()
        return region

    @property
    def rate_limit_seconds(self) -> float:
        return self.rate_limiter.interval(NORMAL)

    def set_rate_limit(self, seconds: Any) -> float:
        """Change the steady polling interval (1-300s)."""
        return self.rate_limiter.set_interval(NORMAL, seconds)

    # -------------------------------------------------------------------------
    # Fetch cycle
    # -------------------------------------------------------------------------

    def _fetch_states(self, category: str) -> Optional[List[StateVector]]:
        """
        Run the gate and the upstream call.

        Returns None when the call was skipped or failed; callers then use the
        snapshot. Raises ConfigurationError when credentials are missing.
        """
        if self.using_synthetic_data:
            _, states = self.feed.get_states()
            return states

        if not self.feed.is_configured:
            raise ConfigurationError('OpenSky credentials not configured')

        if not self.rate_limiter.should_call(category):
            self._skipped_calls += 1
            return None

        self._upstream_calls += 1
        try:
            _, states = self.feed.get_states()
        except AuthenticationError as e:
            self._upstream_failures += 1
            logger.error(f'Fetch cycle aborted, authentication failed: {e}')
            return None
        except UpstreamError as e:
            self._upstream_failures += 1
            logger.error(f'Fetch cycle aborted, upstream failed: {e}')
            return None

        return states

    def check_flights(self) -> Optional[EnrichedFlight]:
        """
        Return the first airborne aircraft inside the monitoring region.

        Reports are scanned in provider order and the first match wins;
        there is no proximity tie-break. Returns None when nothing is in
        range, or when the fetch was skipped or failed and no fresh snapshot
        holds an in-region flight.
        """
        region = self.region_store.get()
        states = self._fetch_states(NORMAL)
        if states is None:
            return self.snapshot_cache.first_in_region(region)

        airborne = [sv for sv in states if not sv.on_ground]
        mask = circle_mask(
            [sv.latitude for sv in airborne],
            [sv.longitude for sv in airborne],
            region,
        )
        match = next((sv for sv, inside in zip(airborne, mask) if inside), None)
        if match is None:
            return None

        logger.info(f'Aircraft {match.icao24} ({match.callsign or "no callsign"}) in region')
        return EnrichedFlight(
            state=match,
            record=self.record_cache.get(match.icao24),
            in_region=True,
        )

    def map_flights(
        self,
        bounds: Optional[MapBounds] = None,
        map_changed: bool = False,
    ) -> List[EnrichedFlight]:
        """
        Return up to max_flights airborne aircraft for the map.

        Selection uses the viewport when given, else the monitoring region.
        in_region is always computed against the region. Scanning stops at
        max_flights matches in provider order.
        """
        region = self.region_store.get()
        states = self._fetch_states(MAP_CHANGE if map_changed else NORMAL)
        if states is None:
            return self.snapshot_cache.lookup(bounds)

        airborne = [sv for sv in states if not sv.on_ground]
        in_region = circle_mask(
            [sv.latitude for sv in airborne],
            [sv.longitude for sv in airborne],
            region,
        )

        selected = []
        for sv, inside in zip(airborne, in_region):
            if bounds is not None:
                chosen = point_in_bounds(sv.latitude, sv.longitude, bounds)
            else:
                chosen = bool(inside)
            if chosen:
                selected.append((sv, bool(inside)))
                if len(selected) >= self.max_flights:
                    break

        records = self.record_cache.get_many(sv.icao24 for sv, _ in selected)
        flights = [
            EnrichedFlight(state=sv, record=records.get(sv.icao24), in_region=inside)
            for sv, inside in selected
        ]

        self.snapshot_cache.store(flights, bounds)
        logger.debug(f'Map lookup selected {len(flights)} of {len(airborne)} airborne aircraft')
        return flights

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def status(self) -> dict:
        """Gateway state for the status endpoint."""
        result = {
            'using_synthetic_data': self.using_synthetic_data,
            'region': self.region.to_dict(),
            'rate_limits': self.rate_limiter.stats,
            'upstream': {
                'calls': self._upstream_calls,
                'failures': self._upstream_failures,
                'skipped': self._skipped_calls,
            },
            'record_cache': self.record_cache.stats,
            'snapshot': self.snapshot_cache.stats,
        }
        if isinstance(self.feed, OpenSkyClient):
            result['upstream']['configured'] = self.feed.is_configured
            result['token'] = self.feed.token_broker.stats
        return result
