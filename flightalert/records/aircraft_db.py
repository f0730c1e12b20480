"""
Aircraft record lookup against the object store.

Each aircraft is a small JSON document at a deterministic key:

    aircraft/<icao24-lowercase>.json

Bodies may be gzip-compressed; they are detected by magic bytes and
decompressed transparently.

Usage:
    source = AircraftRecordSource(store)
    record = source.fetch('a0b1c2')
    print(record.type_code)  # 'B738'
"""

import gzip
import json
import logging
from typing import Optional

from flightalert.errors import StoreLookupError
from flightalert.models import AircraftRecord
from flightalert.records.object_store import ObjectStore

logger = logging.getLogger(__name__)

GZIP_MAGIC = b'\x1f\x8b'


def record_key(icao24: str, prefix: str = 'aircraft/') -> str:
    """Object key for an aircraft record."""
    return f'{prefix}{icao24.strip().lower()}.json'


def decode_record_body(body: bytes, key: str = '') -> dict:
    """Decompress (if needed) and parse a stored record."""
    try:
        if body[:2] == GZIP_MAGIC:
            body = gzip.decompress(body)
        data = json.loads(body.decode('utf-8'))
    except (OSError, EOFError, UnicodeDecodeError, ValueError) as e:
        raise StoreLookupError(f'Undecodable record: {e}', key=key) from e

    if not isinstance(data, dict):
        raise StoreLookupError('Record is not a JSON object', key=key)
    return data


class AircraftRecordSource:
    """Fetches and parses single aircraft records from an ObjectStore."""

    def __init__(self, store: ObjectStore, prefix: str = 'aircraft/'):
        self.store = store
        self.prefix = prefix

    def fetch(self, icao24: str) -> Optional[AircraftRecord]:
        """
        Load one record.

        Returns None when no record exists for the address.
        Raises StoreLookupError on read, decode or parse failure.
        """
        key = record_key(icao24, self.prefix)
        body = self.store.get(key)
        if body is None:
            logger.debug(f'No aircraft record at {key}')
            return None
        data = decode_record_body(body, key)
        try:
            return AircraftRecord.from_json(icao24, data)
        except (AttributeError, TypeError, ValueError) as e:
            raise StoreLookupError(f'Unparsable record: {e}', key=key) from e
