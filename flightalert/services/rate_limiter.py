"""
Gate for outbound calls to the position feed.

Each category has its own interval and last-call timestamp:

- normal: steady UI polling (default 30s, operator-adjustable 1-300s)
- map_change: bursts after the user pans or zooms the map (3s, fixed)

The timestamp is recorded when the gate opens, not when the call succeeds,
so a failing upstream is not retried faster than its cadence. A closed gate
is an expected outcome, not an error; callers fall back to cached data.
"""

import logging
import math
import threading
import time
from typing import Any, Callable, Dict, Iterable, Optional

from flightalert.config import config
from flightalert.errors import ValidationError

logger = logging.getLogger(__name__)

NORMAL = 'normal'
MAP_CHANGE = 'map_change'


class RateLimiter:
    """Per-category call cadence."""

    def __init__(
        self,
        intervals: Optional[Dict[str, float]] = None,
        adjustable: Iterable[str] = (NORMAL,),
        min_seconds: Optional[float] = None,
        max_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        if intervals is None:
            intervals = {
                NORMAL: config.rate_limit.steady_interval_seconds,
                MAP_CHANGE: config.rate_limit.map_change_interval_seconds,
            }
        self.min_seconds = (
            min_seconds if min_seconds is not None
            else config.rate_limit.min_seconds
        )
        self.max_seconds = (
            max_seconds if max_seconds is not None
            else config.rate_limit.max_seconds
        )
        self.adjustable = frozenset(adjustable)
        self.clock = clock

        self._intervals: Dict[str, float] = dict(intervals)
        self._last_call: Dict[str, Optional[float]] = {name: None for name in intervals}
        self._lock = threading.RLock()

    def _require(self, category: str) -> None:
        if category not in self._intervals:
            raise ValueError(f'Unknown rate limit category: {category!r}')

    def should_call(self, category: str, now: Optional[float] = None) -> bool:
        """
        Return True and record the attempt if the category's gate is open.

        Returns False, without touching the timestamp, while less than the
        interval has elapsed since the last recorded attempt.
        """
        self._require(category)
        if now is None:
            now = self.clock()

        with self._lock:
            last = self._last_call[category]
            if last is not None and now - last < self._intervals[category]:
                logger.debug(
                    f'Rate limit: skipping {category} call '
                    f'({now - last:.1f}s of {self._intervals[category]}s)'
                )
                return False
            self._last_call[category] = now
            return True

    def interval(self, category: str = NORMAL) -> float:
        self._require(category)
        with self._lock:
            return self._intervals[category]

    def set_interval(self, category: str, seconds: Any) -> float:
        """
        Change a category's interval.

        Raises ValidationError for fixed categories or values outside
        [min_seconds, max_seconds]; the previous interval stays in force.
        """
        self._require(category)
        if category not in self.adjustable:
            raise ValidationError(f'The {category} interval is fixed')
        if (
            isinstance(seconds, bool)
            or not isinstance(seconds, (int, float))
            or not math.isfinite(seconds)
            or seconds < self.min_seconds
            or seconds > self.max_seconds
        ):
            raise ValidationError(
                f'Invalid rate limit: must be a number between '
                f'{self.min_seconds} and {self.max_seconds} seconds'
            )

        with self._lock:
            self._intervals[category] = seconds
        logger.info(f'Rate limit for {category} calls set to {seconds}s')
        return seconds

    @property
    def stats(self) -> dict:
        now = self.clock()
        result = {}
        with self._lock:
            for name, interval in self._intervals.items():
                last = self._last_call[name]
                result[name] = {
                    'interval_seconds': interval,
                    'seconds_since_last_call': round(now - last, 1) if last is not None else None,
                }
        return result
