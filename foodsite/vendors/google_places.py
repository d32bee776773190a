"""Thin client for the Google Places nearby-search and details endpoints."""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"
_SUCCESS_STATUSES = frozenset({"OK", "ZERO_RESULTS"})
_MAX_NEARBY_RADIUS_METERS = 50000
_DETAIL_FIELDS = ",".join(
    (
        "place_id",
        "name",
        "formatted_address",
        "formatted_phone_number",
        "geometry",
        "website",
        "opening_hours",
        "types",
        "editorial_summary",
    )
)


class GooglePlacesError(RuntimeError):
    """Raised when the Places API answers with a status other than OK/ZERO_RESULTS."""


def _call(endpoint: str, params: Dict[str, str], timeout: float) -> Dict[str, Any]:
    response = _SESSION.get(f"{_BASE_URL}/{endpoint}/json", params=params, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in _SUCCESS_STATUSES:
        logger.error("%s failed: status=%s, error_message=%s", endpoint, status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload


def nearby_search(
    lat: float,
    lng: float,
    radius_meters: int,
    api_key: str,
    *,
    keyword: str = "food bank",
    pagetoken: Optional[str] = None,
    timeout: float = 10,
) -> Dict[str, Any]:
    params = {
        "location": f"{lat},{lng}",
        "radius": str(min(radius_meters, _MAX_NEARBY_RADIUS_METERS)),
        "keyword": keyword,
        "key": api_key,
    }
    if pagetoken:
        params["pagetoken"] = pagetoken
    return _call("nearbysearch", params, timeout)


def place_details(place_id: str, api_key: str, *, timeout: float = 10) -> Dict[str, Any]:
    payload = _call("details", {"place_id": place_id, "key": api_key, "fields": _DETAIL_FIELDS}, timeout)
    return payload.get("result", {})
