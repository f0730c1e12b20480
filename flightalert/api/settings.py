"""
Operator settings API endpoints.

Provides endpoints for:
- GET/POST /api/region - Read or replace the monitoring region
- GET/POST /api/rate-limit - Read or change the steady polling interval

Invalid input raises ValidationError, which the app turns into a 400.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from flightalert.errors import ValidationError

logger = logging.getLogger(__name__)

settings_bp = Blueprint('settings', __name__, url_prefix='/api')


def _gateway():
    return current_app.config['FLIGHT_GATEWAY']


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        raise ValidationError('Failed to parse request: body must be JSON')
    if not isinstance(body, dict):
        raise ValidationError('Failed to parse request: body must be a JSON object')
    return body


@settings_bp.route('/region', methods=['GET'])
def get_region():
    return jsonify({'region': _gateway().region.to_dict()})


@settings_bp.route('/region', methods=['POST'])
def set_region():
    """
    Replace the monitoring region.

    Body: {"center": {"lat": 33.48, "lon": -111.70}, "radiusMiles": 3}
    """
    region = _gateway().set_region(_json_body())
    return jsonify({
        'message': 'Monitoring region updated successfully',
        'region': region.to_dict(),
    })


@settings_bp.route('/rate-limit', methods=['GET'])
def get_rate_limit():
    return jsonify({'rateLimitSeconds': _gateway().rate_limit_seconds})


@settings_bp.route('/rate-limit', methods=['POST'])
def set_rate_limit():
    """
    Change the steady polling interval.

    Body: {"rateLimitSeconds": 30}  (1-300)
    """
    body = _json_body()
    if 'rateLimitSeconds' not in body:
        raise ValidationError('Missing rateLimitSeconds')

    seconds = _gateway().set_rate_limit(body['rateLimitSeconds'])
    return jsonify({
        'message': 'Rate limit updated successfully',
        'rateLimitSeconds': seconds,
    })
