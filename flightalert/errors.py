"""Exception hierarchy for the FlightAlert gateway."""

from typing import Optional


class FlightAlertError(Exception):
    """Base exception for all gateway errors."""


class ValidationError(FlightAlertError):
    """Malformed region or rate-limit input. Maps to HTTP 400."""


class ConfigurationError(FlightAlertError):
    """Upstream credentials or store settings are missing."""


class AuthenticationError(FlightAlertError):
    """Token grant failed, or the feed rejected a freshly issued token."""


class UpstreamError(FlightAlertError):
    """Position feed failure (network, non-2xx, unparsable body)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class StoreLookupError(FlightAlertError):
    """A single aircraft record could not be read or decoded."""

    def __init__(self, message: str, key: str = ''):
        self.key = key
        super().__init__(message)
