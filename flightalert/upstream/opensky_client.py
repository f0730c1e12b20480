"""
OpenSky Network API client.

Handles communication with the OpenSky REST API, including:
- OAuth2 bearer authentication via TokenBroker
- One token refresh and retry when the feed answers 401
- Parsing of the fixed-order state vector arrays

Cadence is not enforced here; FlightGateway consults the RateLimiter
before calling get_states().
"""

import logging
import time
from typing import List, Optional, Tuple

import requests

from flightalert.config import OpenSkyConfig, config
from flightalert.errors import AuthenticationError, ConfigurationError, UpstreamError
from flightalert.models import StateVector
from flightalert.upstream.token_broker import TokenBroker

logger = logging.getLogger(__name__)


class OpenSkyClient:
    """
    Client for the OpenSky /states/all endpoint.

    Credentials come from configuration, never from request input.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_broker: Optional[TokenBroker] = None,
        base_url: str = 'https://opensky-network.org/api',
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.token_broker = token_broker or TokenBroker(session=self.session, timeout=timeout)

        if not self.is_configured:
            logger.warning('OpenSky client has no client credentials configured')

    @classmethod
    def from_config(cls, opensky_config: Optional[OpenSkyConfig] = None) -> 'OpenSkyClient':
        """Create client and token broker from application configuration."""
        opensky_config = opensky_config or config.opensky
        return cls(
            client_id=opensky_config.client_id,
            client_secret=opensky_config.client_secret,
            token_broker=TokenBroker(
                token_url=opensky_config.token_url,
                lifetime_seconds=opensky_config.token_lifetime_seconds,
                refresh_buffer_seconds=opensky_config.token_refresh_buffer_seconds,
                timeout=opensky_config.timeout_seconds,
            ),
            base_url=opensky_config.base_url,
            timeout=opensky_config.timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _request_states(self, token: str) -> requests.Response:
        url = f'{self.base_url}/states/all'
        logger.debug(f'Fetching states: {url}')
        try:
            return self.session.get(
                url,
                headers={'Authorization': f'Bearer {token}'},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error('OpenSky API timeout')
            raise UpstreamError('OpenSky request timed out') from e
        except requests.exceptions.RequestException as e:
            logger.error(f'OpenSky request failed: {e}')
            raise UpstreamError(f'OpenSky request failed: {e}') from e

    def get_states(self) -> Tuple[int, List[StateVector]]:
        """
        Fetch current state vectors from OpenSky.

        Returns:
            Tuple of (api_timestamp, list of StateVectors with positions),
            in the order the provider returned them.

        Raises:
            ConfigurationError when no credentials are configured
            AuthenticationError when no usable token can be obtained
            UpstreamError on network errors, non-2xx or unparsable bodies
        """
        if not self.is_configured:
            raise ConfigurationError('OpenSky credentials not configured')

        token = self.token_broker.get_token(self.client_id, self.client_secret)
        response = self._request_states(token)

        if response.status_code == 401:
            # Token revoked or expired early: refresh once, then give up
            logger.warning('OpenSky rejected token, refreshing')
            self.token_broker.invalidate()
            token = self.token_broker.get_token(self.client_id, self.client_secret)
            response = self._request_states(token)
            if response.status_code == 401:
                raise AuthenticationError('OpenSky rejected a freshly issued token')

        if response.status_code == 429:
            logger.warning('OpenSky rate limit exceeded')
            raise UpstreamError('OpenSky rate limit exceeded', status_code=429)
        if not response.ok:
            logger.error(f'OpenSky API error: {response.status_code}')
            raise UpstreamError(
                f'OpenSky API error: {response.status_code}',
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError('OpenSky returned invalid JSON') from e
        if not isinstance(data, dict):
            raise UpstreamError('OpenSky returned an unexpected payload')

        api_time = data.get('time') or int(time.time())
        states_raw = data.get('states') or []

        logger.info(f'Received {len(states_raw)} state vectors from OpenSky')

        states = []
        for arr in states_raw:
            sv = StateVector.from_array(arr)
            if sv and sv.has_position():
                states.append(sv)

        logger.debug(f'Parsed {len(states)} valid state vectors with positions')

        return api_time, states
