"""TTL-bounded cache of finished search results over a byte-oriented store."""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Callable, List, Optional, Protocol

from cachetools import TTLCache

from foodsite.models import SearchMode, Site

logger = logging.getLogger(__name__)

CACHE_PREFIX = "foodbanks_"
DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_MAX_ENTRIES = 1024


class CacheStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def put(self, key: str, payload: bytes, stored_at: float) -> None: ...

    def delete(self, key: str) -> None: ...

    def delete_prefix(self, prefix: str) -> int: ...


class InMemoryCacheStore:
    """Process-local store bounded by entry count and age; safe to share between threads."""

    def __init__(
        self,
        *,
        maxsize: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._items: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._items.get(key)

    def put(self, key: str, payload: bytes, stored_at: float) -> None:
        with self._lock:
            self._items[key] = payload

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            self._items.expire()
            doomed = [key for key in self._items if key.startswith(prefix)]
            for key in doomed:
                del self._items[key]
        return len(doomed)

    def keys(self) -> List[str]:
        with self._lock:
            self._items.expire()
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            self._items.expire()
            return len(self._items)


class ResultCache:
    """Cache keyed by ``(mode, raw input)`` holding distance-annotated site lists.

    Store errors never escape: reads degrade to a miss and writes are skipped.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        prefix: str = CACHE_PREFIX,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.prefix = prefix

    def key_for(self, mode: SearchMode, raw_input: str) -> str:
        return f"{self.prefix}{SearchMode(mode).value}_{raw_input}"

    def get(self, mode: SearchMode, raw_input: str) -> Optional[List[Site]]:
        key = self.key_for(mode, raw_input)
        try:
            blob = self.store.get(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Cache read error for %s: %s", key, exc)
            return None
        if blob is None:
            return None

        try:
            envelope = json.loads(blob.decode("utf-8"))
            stored_at = float(envelope["timestamp"])
            sites = [Site.from_dict(item) for item in envelope["data"]]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Discarding undecodable cache entry %s: %s", key, exc)
            self._delete(key)
            return None

        if self.clock() - stored_at > self.ttl_seconds:
            logger.info("Cache entry %s expired", key)
            self._delete(key)
            return None
        return sites

    def put(self, mode: SearchMode, raw_input: str, sites: List[Site]) -> None:
        key = self.key_for(mode, raw_input)
        stored_at = self.clock()
        blob = json.dumps({"data": [site.to_dict() for site in sites], "timestamp": stored_at}).encode("utf-8")
        try:
            self.store.put(key, blob, stored_at)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Cache write error for %s: %s", key, exc)

    def clear(self) -> int:
        """Remove every entry in this cache's namespace; other keys are untouched."""
        try:
            removed = self.store.delete_prefix(self.prefix)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Clear cache error: %s", exc)
            return 0
        logger.info("Cleared %d cached searches", removed)
        return removed

    def _delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Cache delete error for %s: %s", key, exc)
