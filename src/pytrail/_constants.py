"""Internal constants shared across the library."""

TASK_NAME = "bgLocation"
STORAGE_KEY = "locations"
USER_AGENT = "pytrail/0.1"

# ------------------------------------------------------------------
# Sampling defaults requested from the host
# ------------------------------------------------------------------

MIN_INTERVAL_MS = 6000
MIN_DISTANCE_METERS = 5.0
INDICATOR_TITLE = "Tracking is active"
INDICATOR_BODY = "Recording your route"
INDICATOR_COLOR = "#333333"

# ------------------------------------------------------------------
# UI refresh
# ------------------------------------------------------------------

POLL_INTERVAL_S = 5.0

# ------------------------------------------------------------------
# Map viewport
# ------------------------------------------------------------------

FOCUS_DELTA = 0.05
OVERVIEW_LATITUDE = 53.558297
OVERVIEW_LONGITUDE = -1.635262
OVERVIEW_DELTA = 9.0

MQTT_DEFAULT_PORT = 1883
MQTT_TLS_PORT = 8883
