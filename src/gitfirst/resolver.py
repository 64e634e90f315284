"""First-commit resolution.

History pages run newest to oldest, so walking to the end costs one request
per commit. Instead the resolver reads ``totalCount`` from the first page and
jumps straight to the position just before the last commit; the page after
that position holds exactly the root commit. At most two queries per repository.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from gitfirst.errors import ErrorCode, ResolutionError

if TYPE_CHECKING:
    from gitfirst.github import HistoryClient
    from gitfirst.models import RepoRef

log = structlog.get_logger()

# GitHub history cursors are "<commit oid> <offset>"; the offset counts
# commits already skipped from the branch tip.
_CURSOR = re.compile(r"^(?P<position>\S+) (?P<offset>\d+)$")


def oldest_commit_cursor(end_cursor: str, total_count: int) -> str:
    """Rewrite *end_cursor* to sit ``total_count - 2`` commits past the tip.

    Requesting ``first: 1`` after the returned cursor yields the oldest commit.
    This is the only place that depends on the cursor's internal layout.

    Raises:
        ResolutionError: the cursor does not have the expected structure, or
            the history is too short to need a second query.
    """
    match = _CURSOR.match(end_cursor)
    if match is None:
        raise ResolutionError(
            ErrorCode.MALFORMED_RESPONSE,
            f"Unrecognised history cursor: {end_cursor!r}",
        )
    if total_count < 2:
        raise ResolutionError(
            ErrorCode.MALFORMED_RESPONSE,
            f"History reports more pages but only {total_count} commit(s)",
        )
    return f"{match['position']} {total_count - 2}"


class FirstCommitResolver:
    def __init__(self, client: HistoryClient) -> None:
        self._client = client

    async def resolve(self, repo: RepoRef) -> str:
        """Return the URL of the root commit of *repo*'s default branch."""
        page = await self._client.fetch_page(repo)

        if page.has_next_page:
            if not page.end_cursor:
                raise ResolutionError(
                    ErrorCode.MALFORMED_RESPONSE,
                    f"History for {repo} has more pages but no end cursor",
                )
            cursor = oldest_commit_cursor(page.end_cursor, page.total_count)
            page = await self._client.fetch_page(repo, after=cursor)

        if not page.most_recent_commit_url:
            raise ResolutionError(
                ErrorCode.MALFORMED_RESPONSE,
                f"History for {repo} returned no commit URL",
            )

        log.info(
            "first_commit_resolved",
            repo=str(repo),
            total_count=page.total_count,
            url=page.most_recent_commit_url,
        )
        return page.most_recent_commit_url
