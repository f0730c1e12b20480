"""
Flight position types.

StateVector is the raw upstream report; EnrichedFlight is what the API
returns - the report plus aircraft metadata and the region flag.

A /states/all row is a 17-element array in this order:

    icao24, callsign, origin_country, time_position, last_contact,
    longitude, latitude, baro_altitude, on_ground, velocity, true_track,
    vertical_rate, sensors, geo_altitude, squawk, spi, position_source

Altitudes are metres, speeds m/s, true_track degrees clockwise from north.
Note that longitude precedes latitude.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from flightalert.models.aircraft import AircraftRecord

# Fields up to and including vertical_rate are required
MIN_STATE_FIELDS = 12


def _at(arr: List[Any], index: int) -> Any:
    return arr[index] if len(arr) > index else None


@dataclass
class StateVector:
    """
    One aircraft report from the position feed.

    Any field other than icao24 and on_ground may be None when the
    transponder did not report it.
    """
    icao24: str
    callsign: Optional[str]
    origin_country: Optional[str]
    time_position: Optional[int]
    last_contact: Optional[int]
    longitude: Optional[float]
    latitude: Optional[float]
    baro_altitude: Optional[float]
    on_ground: bool
    velocity: Optional[float]
    true_track: Optional[float]
    vertical_rate: Optional[float]
    geo_altitude: Optional[float] = None
    squawk: Optional[str] = None
    spi: bool = False
    position_source: Optional[int] = None

    @classmethod
    def from_array(cls, arr: List[Any]) -> Optional['StateVector']:
        """
        Build a StateVector from one /states/all row.

        Rows shorter than MIN_STATE_FIELDS, or without an address, give None.
        """
        if not isinstance(arr, (list, tuple)) or len(arr) < MIN_STATE_FIELDS:
            return None

        icao24 = arr[0]
        if not icao24 or not isinstance(icao24, str):
            return None

        callsign = arr[1]
        if isinstance(callsign, str):
            callsign = callsign.strip() or None
        else:
            callsign = None

        return cls(
            icao24=icao24.strip().lower(),
            callsign=callsign,
            origin_country=arr[2],
            time_position=arr[3],
            last_contact=arr[4],
            longitude=arr[5],
            latitude=arr[6],
            baro_altitude=arr[7],
            on_ground=bool(arr[8]),
            velocity=arr[9],
            true_track=arr[10],
            vertical_rate=arr[11],
            geo_altitude=_at(arr, 13),
            squawk=_at(arr, 14),
            spi=bool(_at(arr, 15)),
            position_source=_at(arr, 16),
        )

    def has_position(self) -> bool:
        """Both coordinates reported."""
        return self.latitude is not None and self.longitude is not None


@dataclass
class EnrichedFlight:
    """A state vector joined with its aircraft record and region flag."""
    state: StateVector
    record: Optional[AircraftRecord] = None
    in_region: bool = False

    @property
    def icao24(self) -> str:
        return self.state.icao24

    def to_dict(self) -> dict:
        """camelCase wire form used by the UI."""
        sv = self.state
        result = {
            'icao24': sv.icao24,
            'callsign': sv.callsign,
            'latitude': sv.latitude,
            'longitude': sv.longitude,
            'baroAltitude': sv.baro_altitude,
            'velocity': sv.velocity,
            'heading': sv.true_track,
            'verticalRate': sv.vertical_rate,
            'onGround': sv.on_ground,
            'inRegion': self.in_region,
        }
        if self.record is not None:
            result.update(self.record.to_dict())
        return result
