"""
FlightAlert Flask Application.

Main entry point for the gateway. Initializes:
- The flight gateway (region, rate limiter, token session, caches)
- API routes
- CORS and JSON error handlers

Usage:
    python -m flightalert.app

Or with gunicorn (one worker: state is held in process memory):
    gunicorn -w 1 --threads 8 'flightalert.app:create_app()'
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from flightalert.api import flights_bp, settings_bp, status_bp
from flightalert.config import AppConfig, config
from flightalert.errors import ValidationError
from flightalert.services import FlightGateway

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    gateway: Optional[FlightGateway] = None,
    app_config: Optional[AppConfig] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        gateway: Pre-built gateway. Built from configuration if None;
                 tests pass one wired to fakes.
        app_config: Configuration to build the gateway from.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    if gateway is None:
        logger.info('Initializing flight gateway...')
        gateway = FlightGateway.from_config(app_config or config)
    app.config['FLIGHT_GATEWAY'] = gateway

    if not gateway.using_synthetic_data and not gateway.feed.is_configured:
        logger.warning(
            'OpenSky credentials not configured. Set OPENSKY_CLIENT_ID and '
            'OPENSKY_CLIENT_SECRET in .env or enable USE_SYNTHETIC_DATA'
        )

    # Register API blueprints
    app.register_blueprint(flights_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(status_bp)

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(ValidationError)
    def validation_error(e):
        logger.info(f'Rejected request: {e}')
        return {'error': str(e)}, 400

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(HTTPException)
    def http_error(e):
        return {'error': e.description}, e.code

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    logger.info(f'Starting FlightAlert gateway on http://localhost:{config.port}')

    app.run(
        host='0.0.0.0',
        port=config.port,
        debug=config.debug,
        threaded=True,
        use_reloader=False,  # Reloader would build a second gateway with its own state
    )


if __name__ == '__main__':
    run_development_server()
