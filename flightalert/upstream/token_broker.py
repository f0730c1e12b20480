"""
OAuth2 client-credentials session for the OpenSky API.

Holds at most one bearer token. The common path returns the cached token
without any network call; a grant is performed only when no token is
cached or less than the refresh buffer (5 minutes) of validity remains.

Tokens are assumed to live a fixed 30 minutes from issuance, regardless of
the expires_in the provider reports.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from flightalert.cache import CacheEntry
from flightalert.config import config
from flightalert.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenState:
    token: str
    expires_at: float


class TokenBroker:
    """Obtains, caches and invalidates the upstream bearer token."""

    def __init__(
        self,
        token_url: Optional[str] = None,
        lifetime_seconds: Optional[int] = None,
        refresh_buffer_seconds: Optional[int] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.token_url = token_url or config.opensky.token_url
        self.lifetime_seconds = (
            lifetime_seconds if lifetime_seconds is not None
            else config.opensky.token_lifetime_seconds
        )
        self.refresh_buffer_seconds = (
            refresh_buffer_seconds if refresh_buffer_seconds is not None
            else config.opensky.token_refresh_buffer_seconds
        )
        self.timeout = timeout if timeout is not None else config.opensky.timeout_seconds
        self.session = session or requests.Session()
        self.clock = clock

        self._entry: Optional[CacheEntry[TokenState]] = None
        self._lock = threading.RLock()
        self._grants = 0

    def _cached_token(self, now: float) -> Optional[str]:
        with self._lock:
            entry = self._entry
        if entry is None:
            return None
        if entry.data.expires_at - now > self.refresh_buffer_seconds:
            return entry.data.token
        return None

    def get_token(self, client_id: str, client_secret: str) -> str:
        """
        Return a bearer token, performing a grant if needed.

        Raises AuthenticationError when the grant fails; the cached token is
        cleared in that case.
        """
        token = self._cached_token(self.clock())
        if token:
            return token

        logger.info('Requesting OpenSky access token')
        issued_at = self.clock()
        try:
            response = self.session.post(
                self.token_url,
                data={
                    'grant_type': 'client_credentials',
                    'client_id': client_id,
                    'client_secret': client_secret,
                },
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
            token = data.get('access_token') if isinstance(data, dict) else None
        except requests.exceptions.HTTPError as e:
            self.invalidate()
            logger.error(f'OpenSky token grant rejected: {e.response.status_code}')
            raise AuthenticationError(
                f'Token grant failed with HTTP {e.response.status_code}'
            ) from e
        except (requests.exceptions.RequestException, ValueError) as e:
            self.invalidate()
            logger.error(f'OpenSky token request failed: {e}')
            raise AuthenticationError(f'Token grant failed: {e}') from e

        if not token or not isinstance(token, str):
            self.invalidate()
            raise AuthenticationError('Token response did not contain an access_token')

        with self._lock:
            self._entry = CacheEntry(
                data=TokenState(token=token, expires_at=issued_at + self.lifetime_seconds),
                timestamp=issued_at,
            )
            self._grants += 1

        logger.info(f'OpenSky token obtained (valid {self.lifetime_seconds}s)')
        return token

    def invalidate(self) -> None:
        """Drop the cached token; the next get_token performs a grant."""
        with self._lock:
            self._entry = None

    @property
    def state(self) -> Optional[TokenState]:
        with self._lock:
            return self._entry.data if self._entry else None

    @property
    def stats(self) -> dict:
        with self._lock:
            entry = self._entry
            grants = self._grants
        return {
            'has_token': entry is not None,
            'expires_in_seconds': round(entry.data.expires_at - self.clock()) if entry else None,
            'grants': grants,
        }
