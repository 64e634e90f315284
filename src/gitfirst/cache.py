"""First-commit URL cache, keyed by ``owner/repo``.

All cache operations catch backend errors internally and degrade
gracefully: read failures return ``None`` (treated as a cache miss by
callers), write failures are logged and ignored (the resolved URL is still
returned). Infrastructure errors never cross the cache class boundary.
Errors are logged with ``exc_info=True`` so they remain observable.

Backends are chosen by URL:

- ``redis://`` / ``rediss://``  → :class:`RedisCache`
- ``sqlite:///path``, a bare path, or ``:memory:``  → :class:`SqliteCache`
- ``""``  → :class:`NullCache` (caching disabled)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import aiosqlite
import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

if TYPE_CHECKING:
    from gitfirst.config import CacheSettings

log = structlog.get_logger()

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS first_commit_cache (
    cache_key   TEXT PRIMARY KEY,
    url         TEXT NOT NULL,
    fetched_at  TEXT NOT NULL,
    expires_at  TEXT
)
"""


def _is_url(value: object) -> bool:
    return isinstance(value, str) and value.startswith(("https://", "http://"))


def _expired(expires_at: str) -> bool:
    try:
        return datetime.now(UTC) > datetime.fromisoformat(expires_at)
    except ValueError:
        return True


class CacheProtocol(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def close(self) -> None: ...


class NullCache:
    """Always misses. Used when caching is disabled or the store is unavailable."""

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str) -> None:
        return None

    async def close(self) -> None:
        return None


class SqliteCache:
    """SQLite-backed cache implementing CacheProtocol."""

    def __init__(self, db: aiosqlite.Connection, ttl_hours: int | None = None) -> None:
        self._db = db
        self._ttl_hours = ttl_hours

    async def init_db(self) -> None:
        """Create the table and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_TABLE)
        await self._db.commit()

    async def get(self, key: str) -> str | None:
        """Read a URL. Returns ``None`` on miss, expiry, bad value or read failure."""
        try:
            cursor = await self._db.execute(
                "SELECT url, expires_at FROM first_commit_cache WHERE cache_key = ?",
                (key,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error:
            log.warning("cache_read_error", key=key, exc_info=True)
            return None

        if row is None:
            return None
        url, expires_at = row
        if expires_at is not None and _expired(expires_at):
            return None
        if not _is_url(url):
            log.warning("cache_read_error", key=key, reason="malformed value")
            return None
        return url

    async def set(self, key: str, value: str) -> None:
        """Write a URL. Non-fatal on failure."""
        now = datetime.now(UTC)
        expires_at = None
        if self._ttl_hours is not None:
            expires_at = (now + timedelta(hours=self._ttl_hours)).isoformat()
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO first_commit_cache "
                "(cache_key, url, fetched_at, expires_at) VALUES (?, ?, ?, ?)",
                (key, value, now.isoformat(), expires_at),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=key, exc_info=True)

    async def close(self) -> None:
        await self._db.close()


class RedisCache:
    """Redis-backed cache implementing CacheProtocol.

    Values are raw URL strings under the bare ``owner/repo`` key.
    """

    def __init__(self, client: aioredis.Redis, ttl_hours: int | None = None) -> None:
        self._redis = client
        self._ttl_hours = ttl_hours

    async def get(self, key: str) -> str | None:
        try:
            value = await self._redis.get(key)
        except (RedisError, OSError, UnicodeDecodeError):
            log.warning("cache_read_error", key=key, exc_info=True)
            return None
        if value is None:
            return None
        if not _is_url(value):
            log.warning("cache_read_error", key=key, reason="malformed value")
            return None
        return value

    async def set(self, key: str, value: str) -> None:
        ex = self._ttl_hours * 3600 if self._ttl_hours is not None else None
        try:
            await self._redis.set(key, value, ex=ex)
        except (RedisError, OSError):
            log.warning("cache_write_error", key=key, exc_info=True)

    async def close(self) -> None:
        try:
            await self._redis.aclose()
        except (RedisError, OSError):
            log.warning("cache_close_error", exc_info=True)


def redis_url(url: str, force_tls: bool) -> str:
    if force_tls and url.startswith("redis://"):
        return "rediss://" + url[len("redis://") :]
    return url


def sqlite_path(url: str) -> str:
    """``sqlite:////abs/path`` → ``/abs/path``; bare paths pass through."""
    return url.removeprefix("sqlite:///")


async def _open_sqlite(url: str, ttl_hours: int | None) -> SqliteCache:
    path = sqlite_path(url)
    if path != ":memory:":
        Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        path = str(Path(path).expanduser())
    db = await aiosqlite.connect(path)
    cache = SqliteCache(db, ttl_hours=ttl_hours)
    try:
        await cache.init_db()
    except aiosqlite.Error:
        await db.close()
        raise
    return cache


async def connect_cache(settings: CacheSettings) -> CacheProtocol:
    """Open the configured backend, falling back to :class:`NullCache`.

    An unreachable store never prevents the caller from resolving URLs.
    """
    url = settings.url.strip()
    if not url:
        return NullCache()

    if url.startswith(("redis://", "rediss://")):
        # Connections are made lazily; errors surface per operation.
        try:
            client = aioredis.from_url(redis_url(url, settings.force_tls), decode_responses=True)
        except ValueError:
            log.warning("cache_unavailable", backend="redis", exc_info=True)
            return NullCache()
        return RedisCache(client, ttl_hours=settings.ttl_hours)

    try:
        return await _open_sqlite(url, settings.ttl_hours)
    except (aiosqlite.Error, OSError):
        log.warning("cache_unavailable", url=url, exc_info=True)
        return NullCache()


@asynccontextmanager
async def open_cache(settings: CacheSettings) -> AsyncIterator[CacheProtocol]:
    cache = await connect_cache(settings)
    try:
        yield cache
    finally:
        await cache.close()
