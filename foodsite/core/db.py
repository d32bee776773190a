"""Database helpers backing the durable result cache."""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

import psycopg2
from psycopg2 import pool

from foodsite.core.config import get_settings
from foodsite.core.errors import CacheFailure

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS locator_cache (
    key TEXT PRIMARY KEY,
    payload BYTEA NOT NULL,
    stored_at TIMESTAMPTZ NOT NULL
);
"""

_SELECT = "SELECT payload FROM locator_cache WHERE key = %(key)s;"

_UPSERT = """
INSERT INTO locator_cache (key, payload, stored_at)
VALUES (%(key)s, %(payload)s, %(stored_at)s)
ON CONFLICT (key) DO UPDATE SET
    payload = EXCLUDED.payload,
    stored_at = EXCLUDED.stored_at;
"""

_DELETE = "DELETE FROM locator_cache WHERE key = %(key)s;"

# left() instead of LIKE so "_" in the prefix is not a wildcard
_DELETE_PREFIX = "DELETE FROM locator_cache WHERE left(key, length(%(prefix)s)) = %(prefix)s;"


class PostgresCacheStore:
    """Cache store persisting opaque payloads in the ``locator_cache`` table."""

    def ensure_schema(self) -> None:
        self._execute(_CREATE_TABLE, {})

    def get(self, key: str) -> Optional[bytes]:
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(_SELECT, {"key": key})
                    row = cur.fetchone()
        except psycopg2.Error as exc:
            raise CacheFailure(f"cache read failed: {exc}") from exc
        if row is None:
            return None
        return bytes(row[0])

    def put(self, key: str, payload: bytes, stored_at: float) -> None:
        self._execute(
            _UPSERT,
            {
                "key": key,
                "payload": psycopg2.Binary(payload),
                "stored_at": datetime.fromtimestamp(stored_at, tz=timezone.utc),
            },
        )

    def delete(self, key: str) -> None:
        self._execute(_DELETE, {"key": key})

    def delete_prefix(self, prefix: str) -> int:
        return self._execute(_DELETE_PREFIX, {"prefix": prefix})

    def _execute(self, sql: str, params: dict) -> int:
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    affected = cur.rowcount
                conn.commit()
        except psycopg2.Error as exc:
            raise CacheFailure(f"cache write failed: {exc}") from exc
        logger.debug("Executed cache statement affecting %s rows", affected)
        return max(affected, 0)
