"""Shared fixtures: settings and GitHub GraphQL payload builders."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from gitfirst.config import Settings

API_URL = "https://api.github.com/graphql"

HistoryPayload = Callable[..., dict[str, Any]]


def _history_payload(
    url: str,
    *,
    total_count: int = 1,
    has_next_page: bool = False,
    end_cursor: str | None = None,
) -> dict[str, Any]:
    return {
        "data": {
            "repository": {
                "defaultBranchRef": {
                    "target": {
                        "history": {
                            "totalCount": total_count,
                            "pageInfo": {
                                "hasNextPage": has_next_page,
                                "endCursor": end_cursor,
                            },
                            "edges": [{"node": {"commitUrl": url}}],
                        }
                    }
                }
            }
        }
    }


@pytest.fixture()
def history_payload() -> HistoryPayload:
    """Build a GraphQL history response holding a single commit edge."""
    return _history_payload


@pytest.fixture()
def settings() -> Settings:
    """Settings with an in-memory cache and a dummy token."""
    return Settings(
        github={"token": "test-token", "api_url": API_URL},
        cache={"url": ":memory:"},
        server={"public_url": "https://first.example"},
    )
