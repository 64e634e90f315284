"""HTTP entry point.

``create_app()`` builds the ASGI app; every GET path is handed to
:class:`gitfirst.handler.RequestHandler`. Run locally with
``gitfirst-server`` or ``uvicorn gitfirst.server:create_app --factory``.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.responses import Response

from gitfirst import __version__
from gitfirst.config import Settings
from gitfirst.handler import is_xhr_request
from gitfirst.logging_setup import setup_logging
from gitfirst.state import AppState, build_app_state

log = structlog.get_logger()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    exit_stack = AsyncExitStack()
    state_lock = asyncio.Lock()

    async def app_state(app: FastAPI) -> AppState:
        """Return the shared state, opening it on first use.

        Hosts that skip ASGI lifespan events get the state built on the
        first request instead.
        """
        state: AppState | None = getattr(app.state, "gitfirst", None)
        if state is not None:
            return state
        async with state_lock:
            state = getattr(app.state, "gitfirst", None)
            if state is None:
                state = await exit_stack.enter_async_context(build_app_state(settings))
                app.state.gitfirst = state
        return state

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app_state(app)
        log.info("server_started", version=__version__)
        try:
            yield
        finally:
            await exit_stack.aclose()
            app.state.gitfirst = None

    app = FastAPI(
        title="gitfirst",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get("/{full_path:path}")
    async def first_commit(full_path: str, request: Request) -> Response:
        try:
            state = await app_state(request.app)
            return await state.handler.handle(full_path, is_xhr=is_xhr_request(request.headers))
        except Exception as exc:
            log.exception("request_failed", path=full_path)
            return PlainTextResponse(f"Error: {exc}", status_code=500)

    # Closes state opened lazily when no lifespan shutdown will run.
    app.state.close_state = exit_stack.aclose
    return app


def main() -> None:
    settings = Settings()
    setup_logging(settings.logging)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
