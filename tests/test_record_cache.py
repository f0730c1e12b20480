import gzip
import json
import threading
import time

import pytest

from flightalert.cache import AircraftRecordCache, SnapshotCache
from flightalert.errors import StoreLookupError
from flightalert.models import AircraftRecord, Center, EnrichedFlight, MapBounds, Region
from flightalert.records import AircraftRecordSource, DatabaseObjectStore, record_key


def test_record_key_is_lowercase_path():
    assert record_key('A0B1C2') == 'aircraft/a0b1c2.json'


def test_hit_serves_from_memory(record_cache, memory_store):
    memory_store.add_record('a0b1c2', registration='N12345', typecode='B738')

    first = record_cache.get('A0B1C2')
    second = record_cache.get('a0b1c2')

    assert first.registration == 'N12345'
    assert first.type_code == 'B738'
    assert second is first
    assert memory_store.reads == ['aircraft/a0b1c2.json']


def test_not_found_is_cached_within_ttl(record_cache, memory_store, clock):
    assert record_cache.get('ffffff') is None
    clock.advance(3599)
    assert record_cache.get('ffffff') is None

    assert memory_store.reads == ['aircraft/ffffff.json']


def test_entry_refetched_after_ttl(record_cache, memory_store, clock):
    assert record_cache.get('a0b1c2') is None
    memory_store.add_record('a0b1c2', registration='N12345')
    clock.advance(3600)

    assert record_cache.get('a0b1c2').registration == 'N12345'
    assert len(memory_store.reads) == 2


def test_store_failure_degrades_without_caching(record_cache, memory_store):
    memory_store.add_record('a0b1c2', registration='N12345')
    memory_store.failing.add('aircraft/a0b1c2.json')

    assert record_cache.get('a0b1c2') is None
    assert 'a0b1c2' not in record_cache
    assert record_cache.stats['store_errors'] == 1

    memory_store.failing.clear()
    assert record_cache.get('a0b1c2').registration == 'N12345'


def test_undecodable_record_degrades(record_cache, memory_store):
    memory_store.objects['aircraft/a0b1c2.json'] = b'{not json'
    assert record_cache.get('a0b1c2') is None


def test_non_string_fields_in_record_are_tolerated(record_cache, memory_store):
    memory_store.objects['aircraft/a0b1c2.json'] = json.dumps({
        'icao24': 12345,
        'registration': 67890,
        'built': 2012,
    }).encode()

    record = record_cache.get('a0b1c2')

    assert record.icao24 == 'a0b1c2'
    assert record.registration == '67890'
    assert record.built == '2012'


def test_get_many_survives_malformed_record(record_cache, memory_store):
    memory_store.add_record('aaaaaa', registration='N1')
    memory_store.objects['aircraft/bbbbbb.json'] = json.dumps({'icao24': ['x']}).encode()
    memory_store.objects['aircraft/cccccc.json'] = b'"just a string"'

    records = record_cache.get_many(['aaaaaa', 'bbbbbb', 'cccccc'])

    assert records['aaaaaa'].registration == 'N1'
    assert records['bbbbbb'].icao24 == 'bbbbbb'
    assert records['cccccc'] is None


def test_gzipped_record_is_decompressed(record_cache, memory_store):
    body = json.dumps({'icao24': 'a0b1c2', 'registration': 'G-EUPT'}).encode()
    memory_store.objects['aircraft/a0b1c2.json'] = gzip.compress(body)

    assert record_cache.get('a0b1c2').registration == 'G-EUPT'


def test_inserting_past_capacity_evicts_oldest_tenth(memory_store, clock):
    cache = AircraftRecordCache(
        AircraftRecordSource(memory_store),
        ttl_seconds=3600,
        max_entries=1000,
        eviction_fraction=0.1,
        clock=clock,
    )
    for i in range(1000):
        cache.get(f'{i:06x}')
        clock.advance(0.01)
    assert len(cache) == 1000

    cache.get('abcdef')

    assert len(cache) <= 901
    assert 'abcdef' in cache
    for i in range(100):
        assert f'{i:06x}' not in cache
    assert f'{100:06x}' in cache


def test_refreshing_existing_key_at_capacity_does_not_evict(memory_store, clock):
    cache = AircraftRecordCache(
        AircraftRecordSource(memory_store),
        ttl_seconds=10,
        max_entries=5,
        clock=clock,
    )
    for i in range(5):
        cache.get(f'{i:06x}')
    clock.advance(11)

    cache.get('000000')

    assert len(cache) == 5


def test_get_many_returns_every_key(record_cache, memory_store):
    memory_store.add_record('aaaaaa', registration='N1')
    memory_store.add_record('bbbbbb', registration='N2')

    records = record_cache.get_many(['AAAAAA', 'bbbbbb', 'cccccc', 'aaaaaa'])

    assert set(records) == {'aaaaaa', 'bbbbbb', 'cccccc'}
    assert records['aaaaaa'].registration == 'N1'
    assert records['bbbbbb'].registration == 'N2'
    assert records['cccccc'] is None


def test_get_many_isolates_failures(record_cache, memory_store):
    memory_store.add_record('aaaaaa', registration='N1')
    memory_store.add_record('bbbbbb', registration='N2')
    memory_store.failing.add('aircraft/bbbbbb.json')

    records = record_cache.get_many(['aaaaaa', 'bbbbbb'])

    assert records == {'aaaaaa': records['aaaaaa'], 'bbbbbb': None}
    assert records['aaaaaa'].registration == 'N1'


class SlowSource:
    """Record source whose lookups block until all of them have started."""

    def __init__(self, count):
        self.barrier = threading.Barrier(count, timeout=5)

    def fetch(self, icao24):
        self.barrier.wait()
        time.sleep(0.05)
        return None


def test_get_many_runs_lookups_in_parallel():
    # The barrier only releases if all four lookups are in flight at once
    cache = AircraftRecordCache(SlowSource(4), ttl_seconds=60, max_entries=10, workers=4)
    started = time.perf_counter()

    records = cache.get_many(['aaaaa1', 'aaaaa2', 'aaaaa3', 'aaaaa4'])

    assert len(records) == 4
    assert time.perf_counter() - started < 1.0


def test_database_object_store_round_trip():
    store = DatabaseObjectStore('sqlite:///:memory:')
    store.put('aircraft/a0b1c2.json', b'{"registration": "N12345"}')
    store.put('aircraft/a0b1c3.json', b'{}')
    store.put('other/readme.txt', b'hi', content_type='text/plain')

    assert store.get('aircraft/a0b1c2.json') == b'{"registration": "N12345"}'
    assert store.get('aircraft/missing.json') is None
    assert store.list('aircraft/') == ['aircraft/a0b1c2.json', 'aircraft/a0b1c3.json']
    assert len(store.list()) == 3


def test_database_store_backs_record_source():
    store = DatabaseObjectStore('sqlite:///:memory:')
    store.put(record_key('a0b1c2'), json.dumps({
        'icao24': 'a0b1c2',
        'registration': 'N12345',
        'typecode': 'B738',
        'manufacturerName': 'Boeing',
        'model': '737-8H4',
        'owner': 'Southwest Airlines',
        'serialNumber': '36729',
        'built': '2012',
    }).encode())

    record = AircraftRecordSource(store).fetch('A0B1C2')

    assert record.manufacturer == 'Boeing'
    assert record.operator == 'Southwest Airlines'
    assert record.serial_number == '36729'
    assert record.built == '2012'


def test_source_raises_store_lookup_error_on_bad_body(memory_store):
    memory_store.objects['aircraft/a0b1c2.json'] = b'[1, 2, 3]'
    with pytest.raises(StoreLookupError):
        AircraftRecordSource(memory_store).fetch('a0b1c2')


class TestSnapshotCache:

    BOUNDS = MapBounds(north=34, south=33, east=-111, west=-112)

    @pytest.fixture
    def snapshots(self, clock):
        return SnapshotCache(ttl_seconds=30, bounds_tolerance=1.0, clock=clock)

    @pytest.fixture
    def flights(self, make_state):
        return [
            EnrichedFlight(state=make_state('aaaaaa', 33.5, -111.5), in_region=False),
            EnrichedFlight(state=make_state('bbbbbb', 33.49, -111.71), in_region=True),
        ]

    def test_similar_viewport_served(self, snapshots, flights, clock):
        snapshots.store(flights, self.BOUNDS)
        clock.advance(20)

        shifted = MapBounds(north=34.5, south=33.5, east=-110.5, west=-111.5)
        assert [f.icao24 for f in snapshots.lookup(shifted)] == ['aaaaaa', 'bbbbbb']

    def test_distant_viewport_not_served(self, snapshots, flights, clock):
        snapshots.store(flights, self.BOUNDS)
        clock.advance(20)

        moved = MapBounds(north=36, south=35, east=-111, west=-112)
        assert snapshots.lookup(moved) == []

    def test_absent_bounds_match_only_absent_bounds(self, snapshots, flights):
        snapshots.store(flights, None)
        assert len(snapshots.lookup(None)) == 2
        assert snapshots.lookup(self.BOUNDS) == []

    def test_expired_snapshot_not_served(self, snapshots, flights, clock, region):
        snapshots.store(flights, self.BOUNDS)
        clock.advance(30)
        assert snapshots.lookup(self.BOUNDS) == []
        assert snapshots.first_in_region(region) is None

    def test_first_in_region_ignores_viewport(self, snapshots, flights, region):
        snapshots.store(flights, self.BOUNDS)
        assert snapshots.first_in_region(region).icao24 == 'bbbbbb'

    def test_first_in_region_rechecks_against_given_region(self, snapshots, flights):
        snapshots.store(flights, None)
        elsewhere = Region(center=Center(lat=40.64, lon=-73.78), radius_miles=3)
        assert snapshots.first_in_region(elsewhere) is None

    def test_stats(self, snapshots, flights, clock):
        assert snapshots.stats == {'cached': False}
        snapshots.store(flights, self.BOUNDS)
        clock.advance(4)
        stats = snapshots.stats
        assert stats['flights'] == 2
        assert stats['age_seconds'] == 4.0
        assert stats['bounds'] == self.BOUNDS.to_dict()


def test_source_wraps_parse_failures(memory_store, monkeypatch):
    memory_store.add_record('a0b1c2', registration='N12345')

    def broken(icao24, data):
        raise TypeError('unexpected field type')

    monkeypatch.setattr(AircraftRecord, 'from_json', broken)

    with pytest.raises(StoreLookupError) as excinfo:
        AircraftRecordSource(memory_store).fetch('a0b1c2')
    assert excinfo.value.key == 'aircraft/a0b1c2.json'


def test_zero_ttl_is_honoured(memory_store, clock):
    cache = AircraftRecordCache(AircraftRecordSource(memory_store), ttl_seconds=0, max_entries=10, clock=clock)
    cache.get('a0b1c2')
    cache.get('a0b1c2')

    assert cache.ttl_seconds == 0
    assert len(memory_store.reads) == 2


def test_zero_snapshot_ttl_is_honoured(clock, make_state):
    snapshots = SnapshotCache(ttl_seconds=0, bounds_tolerance=0.0, clock=clock)
    snapshots.store([EnrichedFlight(state=make_state('aaaaaa', 33.5, -111.7))], None)

    assert snapshots.ttl_seconds == 0
    assert snapshots.bounds_tolerance == 0.0
    assert snapshots.lookup(None) == []
