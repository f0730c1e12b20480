"""
Flight lookup API endpoints.

Provides endpoints for:
- GET /api/check-flights - First aircraft inside the monitoring region
- GET /api/map-flights - Aircraft for the map view, bounded by viewport

Missing upstream credentials do not fail the request: the response carries
an empty result and a notice so the UI keeps working.
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from flightalert.errors import ConfigurationError
from flightalert.models import MapBounds

logger = logging.getLogger(__name__)

flights_bp = Blueprint('flights', __name__, url_prefix='/api')

_TRUE_VALUES = ('1', 'true', 'yes')


def _gateway():
    return current_app.config['FLIGHT_GATEWAY']


def _envelope(**payload) -> dict:
    payload['timestamp'] = datetime.now(timezone.utc).isoformat()
    payload['usingSyntheticData'] = _gateway().using_synthetic_data
    return payload


@flights_bp.route('/check-flights', methods=['GET'])
def check_flights():
    """
    Return the first airborne aircraft inside the monitoring region.

    Response: {flight: {...} | null, timestamp, usingSyntheticData}
    """
    try:
        flight = _gateway().check_flights()
    except ConfigurationError as e:
        logger.warning(f'check-flights degraded: {e}')
        return jsonify(_envelope(flight=None, notice=str(e)))

    return jsonify(_envelope(flight=flight.to_dict() if flight else None))


@flights_bp.route('/map-flights', methods=['GET'])
def map_flights():
    """
    List aircraft for the map view.

    Query parameters:
    - north, south, east, west: viewport in degrees (all four, or ignored)
    - mapChanged: true when the request follows a pan/zoom

    Response: {flights: [...], timestamp, usingSyntheticData}
    """
    bounds = MapBounds.from_args(request.args)
    map_changed = request.args.get('mapChanged', 'false').strip().lower() in _TRUE_VALUES

    try:
        flights = _gateway().map_flights(bounds=bounds, map_changed=map_changed)
    except ConfigurationError as e:
        logger.warning(f'map-flights degraded: {e}')
        return jsonify(_envelope(flights=[], notice=str(e)))

    return jsonify(_envelope(flights=[f.to_dict() for f in flights]))
