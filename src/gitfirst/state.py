"""Process-wide collaborators, built once at startup and shared by requests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gitfirst.cache import NullCache, connect_cache
from gitfirst.github import HistoryClient, build_http_client
from gitfirst.handler import RequestHandler
from gitfirst.resolver import FirstCommitResolver

if TYPE_CHECKING:
    import httpx

    from gitfirst.cache import CacheProtocol
    from gitfirst.config import Settings


@dataclass
class AppState:
    settings: Settings
    http_client: httpx.AsyncClient
    cache: CacheProtocol
    resolver: FirstCommitResolver
    handler: RequestHandler


@asynccontextmanager
async def build_app_state(settings: Settings, *, use_cache: bool = True) -> AsyncIterator[AppState]:
    """Open the HTTP client and cache, wire them together, close both on exit."""
    cache = await connect_cache(settings.cache) if use_cache else NullCache()
    try:
        async with build_http_client(settings.github) as client:
            resolver = FirstCommitResolver(HistoryClient(client, settings.github.api_url))
            yield AppState(
                settings=settings,
                http_client=client,
                cache=cache,
                resolver=resolver,
                handler=RequestHandler(resolver, cache, settings.server.public_url),
            )
    finally:
        await cache.close()
