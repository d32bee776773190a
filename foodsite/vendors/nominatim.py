"""Client utilities for the Nominatim geocoding API."""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


class NominatimError(RuntimeError):
    """Raised when Nominatim returns a payload we cannot interpret."""


def search(
    params: Dict[str, str],
    *,
    base_url: str,
    user_agent: str,
    timeout: float = 10,
) -> List[Dict[str, Any]]:
    """Run a structured or free-form search and return the raw candidate list."""
    query = {"format": "json", "limit": "1", **params}
    response = _SESSION.get(base_url, params=query, headers={"User-Agent": user_agent}, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, list):
        logger.error("nominatim search failed: unexpected payload type %s", type(payload).__name__)
        raise NominatimError("Nominatim returned a non-list payload")
    return payload


def first_point(candidates: List[Dict[str, Any]]) -> Optional[Dict[str, float]]:
    """Return the first candidate as ``{"lat", "lng"}`` or None when unusable."""
    if not candidates:
        return None
    top = candidates[0]
    try:
        return {"lat": float(top["lat"]), "lng": float(top["lon"])}
    except (KeyError, TypeError, ValueError):
        logger.debug("Discarding malformed nominatim candidate: %s", top)
        return None
