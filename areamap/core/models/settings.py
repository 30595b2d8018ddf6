"""
Application settings model module

Holds the configuration of the area map: backend location, viewport
streaming behaviour and UI preferences.

Classes:
    AppSettings: application configuration

Functions:
    load_settings: defaults <- JSON file <- environment
    save_settings: write settings to a JSON file

Environment variables:
    AREAS_API_URL: areas backend base URL
    AREAS_API_TOKEN: bearer token for the areas backend
    AREAMAP_THEME: UI theme mode (System/Light/Dark)
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Optional, Tuple

from areamap.core.constants import AREA_TYPE_POI, AREA_TYPES, DEFAULT_API_TIMEOUT_SEC, logger
from areamap.core.errors import ConfigError

ENV_API_URL = "AREAS_API_URL"
ENV_API_TOKEN = "AREAS_API_TOKEN"
ENV_THEME = "AREAMAP_THEME"

THEME_MODES = ("System", "Light", "Dark")

# expected JSON type per scalar setting
FIELD_TYPES = {
    "api_url": str,
    "api_timeout_sec": float,
    "auth_token": str,
    "fetch_area_type": str,
    "bounds_settle_ms": int,
    "pixels_per_degree": float,
    "draw_vertex_count": int,
    "theme_mode": str,
}


@dataclass
class AppSettings:
    """
    Application configuration.

    Backend:
        api_url: areas backend base URL ("" means not configured)
        api_timeout_sec: HTTP timeout (seconds)
        auth_token: bearer token, optional

    Viewport streaming:
        fetch_area_type: area type requested for the viewport ("poi"/"admin")
        bounds_settle_ms: quiet time after pan/zoom before bounds are reported

    Map:
        initial_center: (lat, lon) shown at startup
        pixels_per_degree: scene scale of the map view
        draw_vertex_count: vertices kept from a freehand draw gesture

    UI:
        theme_mode: "System", "Light" or "Dark"
    """
    api_url: str = ""
    api_timeout_sec: float = DEFAULT_API_TIMEOUT_SEC
    auth_token: Optional[str] = None

    fetch_area_type: str = AREA_TYPE_POI
    bounds_settle_ms: int = 300

    initial_center: Tuple[float, float] = field(default=(40.7128, -74.0060))
    pixels_per_degree: float = 2000.0
    draw_vertex_count: int = 24

    theme_mode: str = "System"

    def validate(self):
        if self.theme_mode not in THEME_MODES:
            raise ConfigError(f"theme_mode must be one of {THEME_MODES}, got {self.theme_mode!r}")
        if self.fetch_area_type not in AREA_TYPES:
            raise ConfigError(f"fetch_area_type must be one of {AREA_TYPES}, got {self.fetch_area_type!r}")
        if self.api_timeout_sec <= 0:
            raise ConfigError("api_timeout_sec must be positive")
        if self.bounds_settle_ms < 0:
            raise ConfigError("bounds_settle_ms must not be negative")
        if self.draw_vertex_count < 3:
            raise ConfigError("draw_vertex_count must be at least 3")
        if self.pixels_per_degree <= 0:
            raise ConfigError("pixels_per_degree must be positive")


def _coerce(key, value):
    """Check a value read from the settings file against the field's type."""
    if key == "initial_center":
        try:
            lat, lon = (float(c) for c in value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"initial_center must be a [lat, lon] pair, got {value!r}") from e
        return lat, lon
    if key == "auth_token" and value is None:
        return None

    kind = FIELD_TYPES[key]
    # bool is an int subclass; true/false is never a number here
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ConfigError(f"{key} must be a {kind.__name__}, got {value!r}")
    if kind is str:
        if not isinstance(value, str):
            raise ConfigError(f"{key} must be a string, got {value!r}")
        return value
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ConfigError(f"{key} must be a whole number, got {value!r}")
    try:
        return kind(value)
    except ValueError as e:
        raise ConfigError(f"{key} must be a {kind.__name__}, got {value!r}") from e


def load_settings(path: Optional[str] = None, environ=None) -> AppSettings:
    """
    Build settings from defaults, an optional JSON file and the environment.

    Unknown keys in the file are ignored with a warning.

    Args:
        path: JSON settings file, skipped when None or missing
        environ: mapping used instead of os.environ (tests)

    Returns:
        validated AppSettings

    Raises:
        ConfigError: unreadable file or invalid values
    """
    environ = os.environ if environ is None else environ
    s = AppSettings()
    known = {f.name for f in fields(AppSettings)}

    if path and os.path.exists(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"could not read settings file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"settings file {path} must hold a JSON object")

        for k, v in data.items():
            if k not in known:
                logger.warning(f"Ignoring unknown setting '{k}' in {path}")
                continue
            setattr(s, k, _coerce(k, v))

    if environ.get(ENV_API_URL):
        s.api_url = environ[ENV_API_URL]
    if environ.get(ENV_API_TOKEN):
        s.auth_token = environ[ENV_API_TOKEN]
    if environ.get(ENV_THEME):
        s.theme_mode = environ[ENV_THEME]

    s.validate()
    return s


def save_settings(settings: AppSettings, path: str):
    data = asdict(settings)
    data["initial_center"] = list(settings.initial_center)
    # the token stays in the environment
    data.pop("auth_token", None)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=4)
