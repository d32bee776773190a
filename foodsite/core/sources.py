"""Source adapters: one per external data source, each independently failable."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from foodsite.core.config import Settings, get_settings
from foodsite.core.errors import AdapterFailure
from foodsite.etl.transform import SOURCE_GOOGLE_PLACES, SOURCE_OSM, SOURCE_SERPAPI
from foodsite.models import Coordinates
from foodsite.vendors import google_places, overpass, serpapi_maps

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]


class SourceAdapter(ABC):
    """Queries one data source around a point.

    ``fetch`` returns raw records in the source's own shape; an empty list is
    a valid outcome. Transport and parse problems raise ``AdapterFailure``.
    """

    source_tag: str = "unknown"

    @abstractmethod
    def fetch(self, center: Coordinates, radius_meters: int) -> List[RawRecord]:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source_tag={self.source_tag!r})"


class OverpassSourceAdapter(SourceAdapter):
    """Facilities tagged as food assistance or charity shops in OpenStreetMap."""

    source_tag = SOURCE_OSM

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def fetch(self, center: Coordinates, radius_meters: int) -> List[RawRecord]:
        try:
            elements = overpass.query_near(
                center.lat,
                center.lng,
                radius_meters,
                base_url=self.settings.overpass_url,
                user_agent=self.settings.user_agent,
                timeout=self.settings.adapter_timeout_seconds,
            )
        except (requests.RequestException, overpass.OverpassError) as exc:
            raise AdapterFailure(self.source_tag, str(exc)) from exc
        logger.info("Overpass returned %d elements", len(elements))
        return elements


class GooglePlacesSourceAdapter(SourceAdapter):
    """Google Places nearby search, enriched with place details."""

    source_tag = SOURCE_GOOGLE_PLACES

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        keyword: str = "food bank",
        max_pages: int = 1,
        max_details: int = 10,
    ) -> None:
        self.settings = settings or get_settings()
        self.keyword = keyword
        self.max_pages = max_pages
        self.max_details = max_details

    def fetch(self, center: Coordinates, radius_meters: int) -> List[RawRecord]:
        api_key = self.settings.google_api_key
        if not api_key:
            raise AdapterFailure(self.source_tag, "GOOGLE_API_KEY is required")

        results: List[RawRecord] = []
        page_token = None
        processed_pages = 0
        try:
            while processed_pages < self.max_pages:
                response = google_places.nearby_search(
                    center.lat,
                    center.lng,
                    radius_meters,
                    api_key,
                    keyword=self.keyword,
                    pagetoken=page_token,
                    timeout=self.settings.adapter_timeout_seconds,
                )
                results.extend(response.get("results", []))
                processed_pages += 1
                page_token = response.get("next_page_token")
                if not page_token:
                    break
                # next_page_token only becomes valid after a short delay
                time.sleep(2.0)
        except (requests.RequestException, google_places.GooglePlacesError, ValueError) as exc:
            raise AdapterFailure(self.source_tag, str(exc)) from exc

        logger.info("Fetched %d nearby results on %d page(s)", len(results), processed_pages)
        return [self._with_details(result, index) for index, result in enumerate(results)]

    def _with_details(self, result: RawRecord, index: int) -> RawRecord:
        place_id = result.get("place_id")
        if not place_id or index >= self.max_details:
            return result
        try:
            details = google_places.place_details(
                place_id, self.settings.google_api_key, timeout=self.settings.adapter_timeout_seconds
            )
        except (requests.RequestException, google_places.GooglePlacesError, ValueError) as exc:
            logger.warning("Failed to fetch details for %s: %s", place_id, exc)
            return result
        return {**result, **details}


class SerpApiMapsSourceAdapter(SourceAdapter):
    """Google Maps listings through SerpAPI."""

    source_tag = SOURCE_SERPAPI

    def __init__(self, settings: Optional[Settings] = None, *, query: str = "food bank", zoom: int = 11) -> None:
        self.settings = settings or get_settings()
        self.query = query
        self.zoom = zoom

    def fetch(self, center: Coordinates, radius_meters: int) -> List[RawRecord]:
        api_key = self.settings.serpapi_api_key
        if not api_key:
            raise AdapterFailure(self.source_tag, "SERPAPI_API_KEY is required")
        # SerpAPI scopes by viewport; listings beyond the radius are dropped at ranking
        ll = serpapi_maps.build_ll(center.lat, center.lng, self.zoom)
        try:
            data = serpapi_maps.fetch_from_serpapi(self.query, api_key, ll)
        except Exception as exc:  # noqa: BLE001
            raise AdapterFailure(self.source_tag, str(exc)) from exc
        items = serpapi_maps.extract_items(data)
        logger.info("Parsed %d SerpAPI listings", len(items))
        return items


def build_default_adapters(settings: Optional[Settings] = None) -> List[SourceAdapter]:
    """OpenStreetMap is always queried; keyed directories join when configured."""
    settings = settings or get_settings()
    adapters: List[SourceAdapter] = [OverpassSourceAdapter(settings)]
    if settings.google_api_key:
        adapters.append(GooglePlacesSourceAdapter(settings))
    if settings.serpapi_api_key:
        adapters.append(SerpApiMapsSourceAdapter(settings))
    return adapters
