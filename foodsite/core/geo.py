"""Geographic helpers: distance maths, input validation and geocoding."""

from __future__ import annotations

import logging
import math
import re
from typing import Optional

import requests

from foodsite.core.config import Settings, get_settings
from foodsite.core.errors import GeocodingFailure, InvalidInput
from foodsite.models import Coordinates, SearchMode
from foodsite.vendors import nominatim

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959.0
_ZIP_REGEX = re.compile(r"^\d{5}$")

FAILURE_MESSAGES = {
    SearchMode.ZIP: "Unable to determine location from postal code",
    SearchMode.CITY: "Unable to find that city",
}


def haversine_miles(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in miles."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # clamp guards against rounding pushing h past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def parse_coordinates(raw: str) -> Coordinates:
    """Parse a literal ``"lat,lng"`` pair."""
    parts = [part.strip() for part in (raw or "").split(",")]
    if len(parts) != 2:
        raise InvalidInput("Coordinates must be given as 'lat,lng'")
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise InvalidInput("Coordinates must be numeric") from exc
    if not (math.isfinite(lat) and math.isfinite(lng)) or not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise InvalidInput("Coordinates are out of range")
    return Coordinates(lat=lat, lng=lng)


def validate_input(raw: str, mode: SearchMode) -> str:
    """Check the mode-specific input shape before any network activity.

    Returns the trimmed input. Raises InvalidInput on violations.
    """
    value = (raw or "").strip()
    if mode is SearchMode.ZIP:
        if not _ZIP_REGEX.match(value):
            raise InvalidInput("Please enter a valid 5-digit ZIP code")
    elif mode is SearchMode.CITY:
        if len(re.sub(r"\s", "", value)) < 2:
            raise InvalidInput("Please enter a city name")
    elif mode is SearchMode.COORDINATES:
        parse_coordinates(value)
    return value


class GeoResolver:
    """Turn a postal code, city name or coordinate pair into a point."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def resolve(self, value: str, mode: SearchMode) -> Coordinates:
        if mode is SearchMode.COORDINATES:
            return parse_coordinates(value)

        if mode is SearchMode.ZIP:
            params = {"postalcode": value, "country": self.settings.default_country_code}
        else:
            params = {"q": value}
            if self.settings.default_country_code:
                params["countrycodes"] = self.settings.default_country_code

        message = FAILURE_MESSAGES[mode]
        try:
            candidates = nominatim.search(
                params,
                base_url=self.settings.nominatim_url,
                user_agent=self.settings.user_agent,
                timeout=self.settings.adapter_timeout_seconds,
            )
        except (requests.RequestException, nominatim.NominatimError, ValueError) as exc:
            logger.error("Geocoding error for %s=%r: %s", mode.value, value, exc)
            raise GeocodingFailure(message) from exc

        point = nominatim.first_point(candidates)
        if point is None:
            logger.info("No geocoding candidates for %s=%r", mode.value, value)
            raise GeocodingFailure(message)
        return Coordinates(lat=point["lat"], lng=point["lng"])
