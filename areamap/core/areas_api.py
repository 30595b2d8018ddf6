"""
Areas backend client module

HTTP client for the areas backend. Requests are JSON, authenticated with a
bearer token when one is set. A 401 response clears the token.

Classes:
    CreateAreaResponse: result of a create/update call
    AreasApiClient: areas backend client

Endpoints:
    GET  /health
    GET  /api/v3/get_areas          (sw_lat, sw_lon, ne_lat, ne_lon, type)
    GET  /api/v3/get_areas_count
    POST /api/v3/create_or_update_area
    POST /api/v3/update_consent

There is no delete endpoint; removing an area is local only.
"""

from dataclasses import dataclass
from typing import List, Optional

import requests

from areamap.core.constants import (
    API_CREATE_OR_UPDATE_AREA, API_GET_AREAS, API_GET_AREAS_COUNT, API_HEALTH, API_UPDATE_CONSENT,
    AREA_TYPE_ADMIN, AREA_TYPE_POI, DEFAULT_API_TIMEOUT_SEC, logger
)
from areamap.core.errors import ConfigError
from areamap.core.models.area import Area
from areamap.core.models.bounds import Bounds


@dataclass
class CreateAreaResponse:
    area_id: Optional[int]
    message: str = ""


class AreasApiClient:
    """
    Areas backend client.

    Attributes:
        base_url: backend base URL
        timeout: request timeout (seconds)
        session: requests session carrying the default headers
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_API_TIMEOUT_SEC,
                 token: Optional[str] = None, session: Optional[requests.Session] = None):
        if not base_url:
            raise ConfigError("AREAS_API_URL is not set.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        self._token = None
        self.set_auth_token(token)

    @staticmethod
    def from_settings(settings) -> "AreasApiClient":
        return AreasApiClient(settings.api_url, settings.api_timeout_sec, settings.auth_token)

    # ----- auth -----

    def set_auth_token(self, token: Optional[str]):
        self._token = token or None
        if self._token:
            self.session.headers["Authorization"] = f"Bearer {self._token}"
        else:
            self.session.headers.pop("Authorization", None)

    def get_auth_token(self) -> Optional[str]:
        return self._token

    # ----- transport -----

    def _request(self, method: str, path: str, **kwargs):
        url = self.base_url + path
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            if response.status_code == 401:
                logger.warning("Areas API rejected the token, clearing it")
                self.set_auth_token(None)
            response.raise_for_status()
        except requests.HTTPError as e:
            r = e.response
            if r is None:
                logger.error(f"Areas API error: {method} {path}: {e}")
            else:
                logger.error(f"Areas API error: {method} {path} -> {r.status_code} {r.reason}: {r.text[:500]}")
            raise
        except requests.RequestException as e:
            logger.error(f"Areas API request failed: {method} {path}: {e}")
            raise
        if not response.content:
            return {}
        return response.json()

    # ----- endpoints -----

    def health_check(self) -> dict:
        return self._request("GET", API_HEALTH)

    def get_areas(self, bounds: Optional[Bounds] = None, area_type: Optional[str] = None) -> List[Area]:
        """
        Areas, optionally restricted to a viewport and an area type.
        """
        params = {}
        if bounds is not None:
            params.update(bounds.to_params())
        if area_type:
            params["type"] = area_type

        data = self._request("GET", API_GET_AREAS, params=params)
        return [Area.from_dict(a) for a in data.get("areas") or []]

    def get_poi_areas_in_bounds(self, lat_min, lon_min, lat_max, lon_max) -> List[Area]:
        return self.get_areas(Bounds(lat_min, lon_min, lat_max, lon_max), AREA_TYPE_POI)

    def get_admin_areas_in_bounds(self, lat_min, lon_min, lat_max, lon_max) -> List[Area]:
        return self.get_areas(Bounds(lat_min, lon_min, lat_max, lon_max), AREA_TYPE_ADMIN)

    def get_areas_count(self) -> int:
        data = self._request("GET", API_GET_AREAS_COUNT)
        return int(data.get("count", 0))

    def create_or_update_area(self, area: Area) -> CreateAreaResponse:
        payload = area.to_dict()
        # the backend rejects a null description
        payload["description"] = payload.get("description") or ""

        logger.info(f"Saving area '{area.name}' (id={area.id})")
        data = self._request("POST", API_CREATE_OR_UPDATE_AREA, json={"area": payload})
        raw_id = data.get("area_id", area.id)
        return CreateAreaResponse(area_id=int(raw_id) if raw_id is not None else None,
                                  message=data.get("message", ""))

    def create_area(self, area: Area) -> CreateAreaResponse:
        return self.create_or_update_area(area)

    def update_area(self, area: Area) -> CreateAreaResponse:
        # same endpoint; the id in the payload makes it an update
        return self.create_or_update_area(area)

    def update_consent(self, contact_email: str, consent_report: bool):
        body = {"contact_email": {"email": contact_email, "consent_report": consent_report}}
        self._request("POST", API_UPDATE_CONSENT, json=body)
