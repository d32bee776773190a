"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_USER_AGENT = "FoodBankLocator/1.0"


class ConfigError(RuntimeError):
    """Raised when an environment value cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    user_agent: str = DEFAULT_USER_AGENT
    google_api_key: str = ""
    serpapi_api_key: str = ""
    database_url: str = ""
    cache_ttl_hours: float = 24.0
    cache_max_entries: int = 1024
    search_radius_miles: float = 30.0
    dedup_distance_miles: float = 0.1
    dedup_name_similarity: float = 0.7
    adapter_timeout_seconds: float = 15.0
    search_timeout_seconds: float = 45.0
    default_country_code: str = "us"
    worker_port: int = 9000

    @property
    def search_radius_meters(self) -> int:
        return int(round(self.search_radius_miles * 1609.344))

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 3600


def _parse_env(name: str, default: str, cast: Callable[[str], T]) -> T:
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} has an invalid value: {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    defaults = Settings()
    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    serpapi_api_key = os.getenv("SERPAPI_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    country_raw: Optional[str] = os.getenv("DEFAULT_COUNTRY_CODE")
    country = country_raw.strip().lower() if country_raw else defaults.default_country_code

    if not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; the Google Places source is disabled.")
    if not serpapi_api_key:
        logger.warning("SERPAPI_API_KEY is not configured; the SerpAPI Google Maps source is disabled.")
    if not database_url:
        logger.warning("DATABASE_URL is not set; search results are cached in memory only.")

    return Settings(
        nominatim_url=os.getenv("NOMINATIM_URL", defaults.nominatim_url),
        overpass_url=os.getenv("OVERPASS_URL", defaults.overpass_url),
        user_agent=os.getenv("LOCATOR_USER_AGENT", defaults.user_agent),
        google_api_key=google_api_key,
        serpapi_api_key=serpapi_api_key,
        database_url=database_url,
        cache_ttl_hours=_parse_env("CACHE_TTL_HOURS", "24", float),
        cache_max_entries=_parse_env("CACHE_MAX_ENTRIES", "1024", int),
        search_radius_miles=_parse_env("SEARCH_RADIUS_MILES", "30", float),
        dedup_distance_miles=_parse_env("DEDUP_DISTANCE_MILES", "0.1", float),
        dedup_name_similarity=_parse_env("DEDUP_NAME_SIMILARITY", "0.7", float),
        adapter_timeout_seconds=_parse_env("ADAPTER_TIMEOUT_SECONDS", "15", float),
        search_timeout_seconds=_parse_env("SEARCH_TIMEOUT_SECONDS", "45", float),
        default_country_code=country,
        worker_port=_parse_env("WORKER_PORT", "9000", int),
    )
