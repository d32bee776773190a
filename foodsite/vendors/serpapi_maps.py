"""SerpAPI Google Maps helpers used by the directory source adapter."""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, List, Optional

from serpapi import GoogleSearch

logger = logging.getLogger(__name__)

RETRY_LIMIT = 1
RETRY_DELAY_SECONDS = 1.2


class SerpApiError(RuntimeError):
    """Raised when SerpAPI returns an empty or error payload."""


def build_serpapi_params(query: str, api_key: str, ll: Optional[str] = None) -> Dict[str, Any]:
    """Construct SerpAPI request parameters for the Google Maps engine."""
    if not query or not query.strip():
        raise ValueError("Query must be provided for SerpAPI lookups.")

    params: Dict[str, Any] = {
        "engine": "google_maps",
        "q": query.strip(),
        "api_key": api_key,
        "type": "search",
    }
    if ll:
        params["ll"] = ll
    return params


def build_ll(lat: float, lng: float, zoom: int = 11) -> str:
    """Format the ``@lat,lng,zoomz`` viewport string SerpAPI expects."""
    return f"@{lat:.6f},{lng:.6f},{zoom}z"


def fetch_from_serpapi(query: str, api_key: str, ll: Optional[str] = None) -> Dict[str, Any]:
    """Call SerpAPI Google Maps and return the raw JSON response with retry logic.

    SerpAPI charges per request; the engine caches finished result sets so a
    repeat search never reaches this function.
    """
    params = build_serpapi_params(query, api_key, ll)

    attempt = 0
    while True:
        attempt += 1
        try:
            logger.info("Calling SerpAPI (attempt %s) for query=%s ll=%s", attempt, query, ll)
            data = GoogleSearch(params).get_dict()
            if not data:
                raise SerpApiError("SerpAPI returned an empty payload.")
            if "error" in data:
                # "no results" is reported as an error string by SerpAPI
                if "hasn't returned any results" in str(data["error"]):
                    return {"local_results": []}
                raise SerpApiError(f"SerpAPI returned an error response: {data['error']}")
            return data
        except Exception as exc:  # pragma: no cover - network calls hard to test
            logger.warning("SerpAPI request failed (attempt %s/%s): %s", attempt, RETRY_LIMIT + 1, exc)
            if attempt > RETRY_LIMIT:
                logger.error("SerpAPI request exhausted retries for query=%s", query)
                raise
            time.sleep(RETRY_DELAY_SECONDS + random.uniform(0, 0.8))


def extract_items(data: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """SerpAPI sometimes returns local_results as a list or nested dict."""
    if not data:
        return []

    local_results = data.get("local_results")
    items: Any = None
    if isinstance(local_results, list):
        items = local_results
    elif isinstance(local_results, dict):
        logger.debug("local_results is dict with keys: %s", list(local_results.keys())[:10])
        for maybe in (local_results.get("places"), local_results.get("results"), local_results.get("local_results")):
            if isinstance(maybe, list):
                items = maybe
                break

    if items is None:
        place_results = data.get("place_results")
        if isinstance(place_results, list):
            items = place_results
        elif isinstance(place_results, dict):
            items = [place_results]
        else:
            items = []

    return [item for item in items if isinstance(item, dict)]
