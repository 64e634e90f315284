"""Integration test fixtures: the full ASGI app over an in-memory cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from gitfirst.server import create_app

if TYPE_CHECKING:
    from collections.abc import Iterator

    from gitfirst.config import Settings


@pytest.fixture()
def client(settings: Settings) -> Iterator[TestClient]:
    """TestClient with lifespan run, so the cache and HTTP client are live."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client
