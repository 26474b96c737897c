"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_CUSTOM_PREMISE_RADIUS = 250
DEFAULT_CUSTOM_PREMISE_LABEL = "Custom Premise"
MIN_GEOFENCE_RADIUS = 1

DEFAULT_DEVICE_CHECK_TIMEOUT_SECONDS = 15
DEFAULT_DEVICE_VERDICT_TTL_HOURS = 24

