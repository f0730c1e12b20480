"""
Synthetic position feed for demos and UI development.

Stands in for OpenSky when USE_SYNTHETIC_DATA is set, so the whole
filter/enrichment path can be exercised without credentials or quota.
Each poll produces:

- the test flight TEST01 somewhere inside 90% of the region radius
  (on 70% of polls, so the UI also sees empty periods)
- a handful of background aircraft outside the region
- one aircraft on the ground at the region center, which lookups must skip
"""

import random
import time
from typing import Callable, List, Optional, Tuple

from flightalert.geo import offset_position
from flightalert.models import Region, StateVector

TEST_FLIGHT_PROBABILITY = 0.7

_BACKGROUND_CALLSIGNS = ['AAL1241', 'SWA3310', 'UAL872', 'DAL95', 'N172SP']


class SyntheticFeed:
    """Generates state vectors around the current monitoring region."""

    def __init__(
        self,
        region_provider: Callable[[], Region],
        rng: Optional[random.Random] = None,
        background_count: int = 4,
    ):
        self.region_provider = region_provider
        self.rng = rng or random.Random()
        self.background_count = background_count

    def _state(self, icao24: str, callsign: str, position: Tuple[float, float], **overrides) -> StateVector:
        now = int(time.time())
        fields = dict(
            icao24=icao24,
            callsign=callsign,
            origin_country='United States',
            time_position=now,
            last_contact=now,
            latitude=position[0],
            longitude=position[1],
            baro_altitude=10668.0,
            on_ground=False,
            velocity=250.0,
            true_track=180.0,
            vertical_rate=-5.0,
        )
        fields.update(overrides)
        return StateVector(**fields)

    def _test_flight(self, region: Region) -> StateVector:
        # sqrt gives a uniform distribution over the disc
        distance = (self.rng.random() ** 0.5) * region.radius_miles * 0.9
        bearing = self.rng.uniform(0, 360)
        position = offset_position(region.center.lat, region.center.lon, distance, bearing)
        return self._state('abc123', 'TEST01', position)

    def get_states(self) -> Tuple[int, List[StateVector]]:
        """Same contract as OpenSkyClient.get_states()."""
        region = self.region_provider()
        center = (region.center.lat, region.center.lon)
        states = []

        if self.rng.random() < TEST_FLIGHT_PROBABILITY:
            states.append(self._test_flight(region))

        states.append(self._state(
            'abc124', 'TEST02', center,
            on_ground=True, baro_altitude=None, velocity=0.0, vertical_rate=0.0,
        ))

        for index in range(self.background_count):
            distance = region.radius_miles * self.rng.uniform(1.5, 5.0)
            bearing = self.rng.uniform(0, 360)
            states.append(self._state(
                f'abd{index:03d}',
                _BACKGROUND_CALLSIGNS[index % len(_BACKGROUND_CALLSIGNS)],
                offset_position(center[0], center[1], distance, bearing),
                baro_altitude=self.rng.uniform(1500, 11500),
                velocity=self.rng.uniform(60, 260),
                true_track=self.rng.uniform(0, 360),
                vertical_rate=self.rng.uniform(-10, 10),
            ))

        return int(time.time()), states
