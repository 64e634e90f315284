from __future__ import annotations

from pydantic import BaseModel, Field


class CommitHistoryPage(BaseModel):
    """One page (of size one) of default-branch history, newest first."""

    total_count: int = Field(ge=0)
    has_next_page: bool
    end_cursor: str | None = None
    most_recent_commit_url: str | None = None  # commitUrl of the page's only edge
