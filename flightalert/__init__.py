"""
FlightAlert - geofenced aircraft alerts over the OpenSky Network feed.

A Flask gateway that rate-limits and authenticates calls to OpenSky,
geofences the returned positions against a monitoring region, enriches
them with aircraft records and serves them to the alert UI.
"""

__version__ = '1.0.0'
