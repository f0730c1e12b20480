"""
Upstream position feed for FlightAlert.

OpenSky client with its OAuth2 token broker, plus a synthetic feed for
demo mode.
"""

from flightalert.upstream.token_broker import TokenBroker, TokenState
from flightalert.upstream.opensky_client import OpenSkyClient
from flightalert.upstream.synthetic import SyntheticFeed

__all__ = ['TokenBroker', 'TokenState', 'OpenSkyClient', 'SyntheticFeed']
