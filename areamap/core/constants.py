"""
Constants module

Application-wide constants, map-layer palettes and the shared logger.

Main constants:
- APP_NAME: application display name
- DEFAULT_WINDOW_SIZE: default host window size
- AREA_STYLE_*: rendering hints for areas on the map
- API_*: areas backend endpoints
- logger: logging instance
"""

import logging

# Application basics
APP_NAME = "Area Map"  # display name
DEFAULT_WINDOW_SIZE = (1400, 900)  # (width, height) in pixels

# Logging setup
# INFO level, timestamp-level-message format
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("AreaMap")

# Area types
AREA_TYPE_POI = "poi"
AREA_TYPE_ADMIN = "admin"
AREA_TYPES = (AREA_TYPE_POI, AREA_TYPE_ADMIN)

# Placeholder name prefix for drawn areas, followed by epoch milliseconds
CUSTOM_AREA_NAME_PREFIX = "Custom Area"

# Rendering hints, keyed the way GeoJSON feature properties carry them
AREA_STYLE_DEFAULT = {"color": "#3388ff", "fillColor": "#3388ff", "fillOpacity": 0.2, "weight": 2}
AREA_STYLE_DRAWN = {"color": "#ae11c6", "fillColor": "#ae11c6", "fillOpacity": 0.3, "weight": 3}
AREA_STYLE_SELECTED = {"color": "#ae11c6", "fillColor": "#ae11c6", "fillOpacity": 0.3, "weight": 3}
AREA_STYLE_CLICKED = {"color": "#e1e100", "fillColor": "#e1e100", "fillOpacity": 0.5, "weight": 4}
STYLE_KEYS = ("color", "fillColor", "fillOpacity", "weight")

# Areas backend
API_HEALTH = "/health"
API_GET_AREAS = "/api/v3/get_areas"
API_GET_AREAS_COUNT = "/api/v3/get_areas_count"
API_CREATE_OR_UPDATE_AREA = "/api/v3/create_or_update_area"
API_UPDATE_CONSENT = "/api/v3/update_consent"
DEFAULT_API_TIMEOUT_SEC = 30.0
