"""Public entry point: resolve, fan out to sources, normalize, dedupe, rank, cache."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Union

from foodsite.core import filters as filter_engine
from foodsite.core.cache import CacheStore, InMemoryCacheStore, ResultCache
from foodsite.core.config import Settings, get_settings
from foodsite.core.dedupe import dedupe_sites
from foodsite.core.errors import CacheFailure, PermissionDenied, SearchCancelled, SearchFailure
from foodsite.core.geo import GeoResolver, validate_input
from foodsite.core.hours import is_open_now
from foodsite.core.ranking import rank
from foodsite.core.sources import RawRecord, SourceAdapter, build_default_adapters
from foodsite.etl.transform import normalize_records
from foodsite.models import Coordinates, SearchMode, Site, SiteFilters, SortKey

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.1

LocationProvider = Callable[[], Coordinates]


@dataclass
class FanOutResult:
    """Outcome of one fan-out round, in adapter order."""

    records: Dict[str, List[RawRecord]] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return bool(self.records)


def memory_store(settings: Settings) -> InMemoryCacheStore:
    return InMemoryCacheStore(maxsize=settings.cache_max_entries, ttl_seconds=settings.cache_ttl_seconds)


class SearchOrchestrator:
    """Explicitly constructed search engine holding its collaborators."""

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        *,
        resolver: Optional[GeoResolver] = None,
        cache: Optional[ResultCache] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
        location_provider: Optional[LocationProvider] = None,
    ) -> None:
        if not adapters:
            raise ValueError("At least one source adapter is required")
        self.settings = settings or get_settings()
        self.adapters = list(adapters)
        self.resolver = resolver or GeoResolver(self.settings)
        self.cache = cache or ResultCache(memory_store(self.settings), ttl_seconds=self.settings.cache_ttl_seconds)
        self.clock = clock
        self.location_provider = location_provider

    def search(
        self,
        raw_input: str,
        mode: Union[SearchMode, str],
        *,
        force_refresh: bool = False,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Site]:
        """Run the full pipeline for one user input.

        Raises InvalidInput, GeocodingFailure, SearchFailure or SearchCancelled.
        A successful search may return an empty list.
        """
        mode = SearchMode(mode)
        value = validate_input(raw_input, mode)
        timeout = self.settings.search_timeout_seconds if timeout is None else timeout
        deadline = time.monotonic() + timeout

        if not force_refresh:
            cached = self.cache.get(mode, value)
            if cached is not None:
                logger.info("Returning cached sites for %s=%r", mode.value, value)
                return cached
        logger.info("Searching for sites near %s=%r", mode.value, value)

        center = self.resolver.resolve(value, mode)
        self._check_cancelled(deadline, cancel_event)

        outcome = self.fan_out(center, deadline=deadline, cancel_event=cancel_event)
        self._check_cancelled(deadline, cancel_event)
        if not outcome.succeeded:
            logger.error("All %d sources failed: %s", len(self.adapters), outcome.failures)
            raise SearchFailure("Unable to find food banks. Please check your connection and try again.")

        candidates: List[Site] = []
        for source_tag, records in outcome.records.items():
            candidates.extend(normalize_records(records, source_tag))

        unique = dedupe_sites(
            candidates,
            max_distance=self.settings.dedup_distance_miles,
            min_similarity=self.settings.dedup_name_similarity,
        )
        ranked = rank(unique, center, self.settings.search_radius_miles)

        self._check_cancelled(deadline, cancel_event)
        self.cache.put(mode, value, ranked)
        logger.info("Found %d sites near %s=%r", len(ranked), mode.value, value)
        return ranked

    def fan_out(
        self,
        center: Coordinates,
        *,
        deadline: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> FanOutResult:
        """Query every adapter concurrently and wait for all of them to settle.

        An adapter that raises or outlives its timeout is recorded as failed;
        the rest are unaffected.
        """
        radius = self.settings.search_radius_meters
        adapter_deadline = time.monotonic() + self.settings.adapter_timeout_seconds
        if deadline is not None:
            adapter_deadline = min(adapter_deadline, deadline)

        executor = ThreadPoolExecutor(max_workers=len(self.adapters), thread_name_prefix="source")
        futures: Dict[Future, SourceAdapter] = {
            executor.submit(adapter.fetch, center, radius): adapter for adapter in self.adapters
        }
        try:
            pending = set(futures)
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    break
                remaining = adapter_deadline - time.monotonic()
                if remaining <= 0:
                    break
                _, pending = wait(pending, timeout=min(remaining, _POLL_SECONDS), return_when=FIRST_COMPLETED)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        outcome = FanOutResult()
        for future, adapter in futures.items():
            name = adapter.source_tag
            if not future.done():
                logger.warning("Source %s timed out", name)
                outcome.failures[name] = "timed out"
                continue
            if future.cancelled():
                outcome.failures[name] = "cancelled"
                continue
            exc = future.exception()
            if exc is not None:
                logger.warning("Source %s failed: %s", name, exc)
                outcome.failures[name] = str(exc)
                continue
            records = future.result() or []
            outcome.records.setdefault(name, []).extend(records)
        return outcome

    def filter(self, sites: Sequence[Site], criteria: Optional[SiteFilters]) -> List[Site]:
        return filter_engine.filter_sites(sites, criteria, self.clock())

    def sort(self, sites: Sequence[Site], key: Union[SortKey, str, None] = SortKey.DISTANCE) -> List[Site]:
        return filter_engine.sort_sites(sites, key, self.clock())

    def apply(
        self,
        sites: Sequence[Site],
        criteria: Optional[SiteFilters] = None,
        key: Union[SortKey, str, None] = SortKey.DISTANCE,
    ) -> List[Site]:
        return filter_engine.apply(sites, criteria, key, self.clock())

    def is_open_now(self, hours: Optional[str]) -> bool:
        return is_open_now(hours, self.clock())

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_current_location_and_search(self, **search_kwargs) -> List[Site]:
        """Search around the device location; PermissionDenied when it is unavailable."""
        if self.location_provider is None:
            raise PermissionDenied("Location services are not available")
        try:
            point = self.location_provider()
        except PermissionDenied:
            raise
        except Exception as exc:  # noqa: BLE001
            raise PermissionDenied(f"Unable to get current location: {exc}") from exc
        return self.search(f"{point.lat},{point.lng}", SearchMode.COORDINATES, **search_kwargs)

    @staticmethod
    def _check_cancelled(deadline: float, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise SearchCancelled("Search was cancelled")
        if time.monotonic() > deadline:
            raise SearchCancelled("Search timed out")


def build_engine(
    settings: Optional[Settings] = None,
    *,
    location_provider: Optional[LocationProvider] = None,
) -> SearchOrchestrator:
    """Wire the default adapters and the configured cache store."""
    settings = settings or get_settings()
    store: CacheStore = memory_store(settings)
    if settings.database_url:
        from foodsite.core.db import PostgresCacheStore

        postgres_store = PostgresCacheStore()
        try:
            postgres_store.ensure_schema()
            store = postgres_store
        except CacheFailure as exc:
            logger.warning("Postgres cache unavailable, caching in memory: %s", exc)
    cache = ResultCache(store, ttl_seconds=settings.cache_ttl_seconds)
    return SearchOrchestrator(
        build_default_adapters(settings),
        settings=settings,
        cache=cache,
        location_provider=location_provider,
    )
