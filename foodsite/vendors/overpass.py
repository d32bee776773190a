"""Client utilities for the OpenStreetMap Overpass API."""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

NAME_PATTERN = "food bank|food pantry|soup kitchen|community fridge"


class OverpassError(RuntimeError):
    """Raised when the Overpass interpreter returns an unusable payload."""


def build_query(lat: float, lng: float, radius_meters: int, timeout: int = 25) -> str:
    """Assemble the Overpass QL query for food-assistance facilities around a point."""
    around = f"(around:{radius_meters},{lat},{lng})"
    selectors = [
        f'node["social_facility"="food_bank"]{around};',
        f'way["social_facility"="food_bank"]{around};',
        f'node["amenity"="social_facility"]["social_facility:for"="food"]{around};',
        f'way["amenity"="social_facility"]["social_facility:for"="food"]{around};',
        f'node["amenity"="food_sharing"]{around};',
        f'node["name"~"{NAME_PATTERN}",i]{around};',
        f'way["name"~"{NAME_PATTERN}",i]{around};',
        f'node["shop"="charity"]{around};',
        f'way["shop"="charity"]{around};',
    ]
    body = "\n  ".join(selectors)
    return f"[out:json][timeout:{timeout}];\n(\n  {body}\n);\nout center body;"


def query_near(
    lat: float,
    lng: float,
    radius_meters: int,
    *,
    base_url: str,
    user_agent: str,
    timeout: float = 30,
) -> List[Dict[str, Any]]:
    """POST the facility query and return the raw ``elements`` list (possibly empty)."""
    query = build_query(lat, lng, radius_meters, timeout=int(timeout))
    response = _SESSION.post(
        base_url,
        data=query.encode("utf-8"),
        headers={"Content-Type": "text/plain", "User-Agent": user_agent},
        timeout=timeout,
    )
    response.raise_for_status()
    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("overpass query failed: response is not JSON")
        raise OverpassError("Overpass returned a non-JSON payload") from exc

    if payload.get("remark") and not payload.get("elements"):
        logger.error("overpass query failed: remark=%s", payload.get("remark"))
        raise OverpassError(payload["remark"])

    elements = payload.get("elements")
    if elements is None:
        return []
    if not isinstance(elements, list):
        raise OverpassError("Overpass elements field is not a list")
    return elements
