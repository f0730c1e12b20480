"""
Health and status API endpoints.

Provides endpoints for:
- GET /api/health - Liveness plus data-mode flag
- GET /api/status - Gateway, cache and rate-limit diagnostics
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

logger = logging.getLogger(__name__)

status_bp = Blueprint('status', __name__, url_prefix='/api')


@status_bp.route('/health', methods=['GET'])
def health():
    """Simple health check endpoint."""
    return jsonify({
        'status': 'ok',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'usingSyntheticData': current_app.config['FLIGHT_GATEWAY'].using_synthetic_data,
    })


@status_bp.route('/status', methods=['GET'])
def get_status():
    """
    Get gateway status information.

    Returns:
    - Monitoring region
    - Rate limiter intervals and last calls
    - Upstream call counters and token validity
    - Record and snapshot cache statistics
    """
    start_time = time.perf_counter()

    status = current_app.config['FLIGHT_GATEWAY'].status()

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'gateway': status,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })
