"""Cache-aside request flow shared by every HTTP entry point.

PARSE → LOOKUP → (miss) RESOLVE → STORE → RESPOND. Cache failures only
affect whether the cache is read or populated, never the outcome.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from importlib import resources
from typing import TYPE_CHECKING

import structlog
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse
from starlette.responses import Response

from gitfirst.errors import GitFirstError, InvalidInputError
from gitfirst.models import RepoRef

if TYPE_CHECKING:
    from gitfirst.cache import CacheProtocol
    from gitfirst.resolver import FirstCommitResolver

log = structlog.get_logger()


@lru_cache(maxsize=1)
def index_html() -> str:
    return resources.files("gitfirst").joinpath("static/index.html").read_text(encoding="utf-8")


def is_xhr_request(headers: Mapping[str, str]) -> bool:
    """True for programmatic callers (``X-Requested-With: XMLHttpRequest``)."""
    return headers.get("x-requested-with", "").lower() == "xmlhttprequest"


def parse_path(path: str) -> RepoRef | None:
    """Return the repository named by *path*, or ``None`` for the index.

    Raises:
        InvalidInputError: anything other than exactly two non-empty segments.
    """
    trimmed = path.strip("/")
    if not trimmed:
        return None
    parts = trimmed.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidInputError(f"Not a repository path: /{trimmed}")
    try:
        return RepoRef(owner=parts[0], name=parts[1])
    except ValueError as exc:
        raise InvalidInputError(f"Not a repository path: /{trimmed}") from exc


class RequestHandler:
    def __init__(
        self,
        resolver: FirstCommitResolver,
        cache: CacheProtocol,
        public_url: str,
    ) -> None:
        self._resolver = resolver
        self._cache = cache
        self._public_url = public_url.rstrip("/")

    async def handle(self, path: str, *, is_xhr: bool = False) -> Response:
        try:
            repo = parse_path(path)
        except InvalidInputError:
            return PlainTextResponse(
                f"Try {self._public_url}/{{owner}}/{{repo}}\n",
                status_code=400,
            )
        if repo is None:
            return HTMLResponse(index_html())

        try:
            url = await self.first_commit(repo)
        except GitFirstError as exc:
            log.warning("resolution_failed", key=repo.cache_key, code=exc.code, error=exc.message)
            return PlainTextResponse(f"Error: {exc.message}", status_code=500)
        return self._respond(url, is_xhr)

    async def first_commit(self, repo: RepoRef) -> str:
        """Cached URL for *repo*, resolving and storing it on a miss.

        Raises:
            GitFirstError: resolution failed; nothing is cached.
        """
        key = repo.cache_key
        url = await self._cache.get(key)
        if url is not None:
            log.info("cache_hit", key=key)
            return url

        log.info("cache_miss", key=key)
        url = await self._resolver.resolve(repo)
        await self._cache.set(key, url)
        return url

    @staticmethod
    def _respond(url: str, is_xhr: bool) -> Response:
        if is_xhr:
            return JSONResponse({"url": url})
        return RedirectResponse(url, status_code=302)
