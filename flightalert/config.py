"""
Configuration management for FlightAlert.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


# Phoenix area, the region the service ships with
DEFAULT_CENTER = (33.481252177897346, -111.70670272771451)


def _parse_location(value: str) -> Optional[Tuple[float, float]]:
    """Parse 'lat,lon' string into tuple, or None if empty/invalid."""
    if not value:
        return None
    try:
        lat, lon = value.split(',')
        return (float(lat.strip()), float(lon.strip()))
    except (ValueError, AttributeError):
        return None


def _env_flag(name: str, default: str = '0') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class OpenSkyConfig:
    """OpenSky API and OAuth2 client-credentials configuration."""
    client_id: Optional[str] = os.getenv('OPENSKY_CLIENT_ID') or None
    client_secret: Optional[str] = os.getenv('OPENSKY_CLIENT_SECRET') or None
    base_url: str = os.getenv('OPENSKY_BASE_URL', 'https://opensky-network.org/api')
    token_url: str = os.getenv(
        'OPENSKY_TOKEN_URL',
        'https://auth.opensky-network.org/auth/realms/opensky-network/protocol/openid-connect/token',
    )
    timeout_seconds: float = float(os.getenv('OPENSKY_TIMEOUT_SECONDS', '15'))

    # Tokens are assumed to live 30 minutes and are refreshed 5 minutes early
    token_lifetime_seconds: int = 1800
    token_refresh_buffer_seconds: int = 300

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(frozen=True)
class RateLimitConfig:
    """Upstream call cadences."""
    steady_interval_seconds: int = int(os.getenv('RATE_LIMIT_SECONDS', '30'))
    map_change_interval_seconds: int = 3
    min_seconds: int = 1
    max_seconds: int = 300


@dataclass(frozen=True)
class RegionConfig:
    """Monitoring region the process starts with."""
    center: Tuple[float, float] = _parse_location(os.getenv('DEFAULT_REGION_CENTER', '')) or DEFAULT_CENTER
    radius_miles: float = float(os.getenv('DEFAULT_RADIUS_MILES', '3'))
    auto_detect: bool = _env_flag('REGION_AUTODETECT')


@dataclass(frozen=True)
class RecordStoreConfig:
    """Object store holding per-aircraft JSON records."""
    backend: str = os.getenv('RECORD_STORE_BACKEND', 'database').lower()
    key_prefix: str = 'aircraft/'

    # S3-compatible bucket (Cloudflare R2 in production)
    bucket: Optional[str] = os.getenv('R2_BUCKET_NAME') or None
    account_id: Optional[str] = os.getenv('R2_ACCOUNT_ID') or None
    endpoint_url: Optional[str] = os.getenv('R2_ENDPOINT_URL') or None
    access_key_id: Optional[str] = os.getenv('R2_ACCESS_KEY_ID') or None
    secret_access_key: Optional[str] = os.getenv('R2_SECRET_ACCESS_KEY') or None
    region_name: str = os.getenv('R2_REGION', 'auto')

    # Local SQL-backed store for development
    database_url: str = os.getenv('RECORD_STORE_DATABASE_URL', 'sqlite:///flightalert.db')

    @property
    def resolved_endpoint_url(self) -> Optional[str]:
        if self.endpoint_url:
            return self.endpoint_url
        if self.account_id:
            return f'https://{self.account_id}.r2.cloudflarestorage.com'
        return None


@dataclass(frozen=True)
class CacheConfig:
    """In-memory cache settings."""
    record_ttl_seconds: int = 3600
    record_max_entries: int = int(os.getenv('RECORD_CACHE_MAX_ENTRIES', '1000'))
    eviction_fraction: float = 0.1
    snapshot_ttl_seconds: int = 30
    bounds_tolerance_degrees: float = 1.0
    enrichment_workers: int = int(os.getenv('ENRICHMENT_WORKERS', '8'))


@dataclass(frozen=True)
class GatewayConfig:
    """Flight lookup behaviour."""
    max_map_flights: int = int(os.getenv('MAX_MAP_FLIGHTS', '50'))
    use_synthetic_data: bool = _env_flag('USE_SYNTHETIC_DATA')


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    opensky: OpenSkyConfig
    rate_limit: RateLimitConfig
    region: RegionConfig
    record_store: RecordStoreConfig
    cache: CacheConfig
    gateway: GatewayConfig

    # Flask settings
    debug: bool
    port: int


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        opensky=OpenSkyConfig(),
        rate_limit=RateLimitConfig(),
        region=RegionConfig(),
        record_store=RecordStoreConfig(),
        cache=CacheConfig(),
        gateway=GatewayConfig(),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
        port=int(os.getenv('PORT', '8787')),
    )


# Singleton instance
config = load_config()
