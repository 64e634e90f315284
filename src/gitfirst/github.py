"""GitHub GraphQL history query client.

One query shape is used for every lookup: the default branch's history,
one commit per page, newest first. The caller supplies ``after`` to jump
to an arbitrary position.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import ValidationError

from gitfirst.errors import ErrorCode, ResolutionError
from gitfirst.models import CommitHistoryPage

if TYPE_CHECKING:
    from gitfirst.config import GitHubSettings
    from gitfirst.models import RepoRef

log = structlog.get_logger()

HISTORY_QUERY = """
query($owner: String!, $repo: String!, $after: String) {
  repository(owner: $owner, name: $repo) {
    defaultBranchRef {
      target {
        ... on Commit {
          history(first: 1, after: $after) {
            totalCount
            pageInfo {
              hasNextPage
              endCursor
            }
            edges {
              node {
                commitUrl
              }
            }
          }
        }
      }
    }
  }
}
"""


def build_http_client(settings: GitHubSettings) -> httpx.AsyncClient:
    """Create the shared AsyncClient for GraphQL calls."""
    headers = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if settings.token is not None:
        headers["Authorization"] = f"bearer {settings.token.get_secret_value()}"
    return httpx.AsyncClient(
        headers=headers,
        timeout=httpx.Timeout(settings.timeout_seconds),
    )


def _not_found(repo: RepoRef, what: str) -> ResolutionError:
    return ResolutionError(
        ErrorCode.REPOSITORY_NOT_FOUND,
        f"{what} not found for {repo}",
        suggestion="Check that the repository exists, is public, and has commits.",
    )


def _malformed(repo: RepoRef, what: str) -> ResolutionError:
    return ResolutionError(
        ErrorCode.MALFORMED_RESPONSE,
        f"Unexpected history response for {repo}: {what}",
    )


class HistoryClient:
    """Runs the history query against GitHub's GraphQL API."""

    def __init__(self, client: httpx.AsyncClient, api_url: str) -> None:
        self._client = client
        self._api_url = api_url

    async def fetch_page(self, repo: RepoRef, after: str | None = None) -> CommitHistoryPage:
        """Return the single commit at the cursor position, with totals.

        Raises:
            ResolutionError: transport failure, missing repository/branch/history,
                or a response without the expected fields.
        """
        variables: dict[str, Any] = {"owner": repo.owner, "repo": repo.name}
        if after is not None:
            variables["after"] = after
        log.debug("history_query", repo=str(repo), after=after)

        try:
            response = await self._client.post(
                self._api_url,
                json={"query": HISTORY_QUERY, "variables": variables},
            )
        except httpx.HTTPError as exc:
            raise ResolutionError(
                ErrorCode.UPSTREAM_FAILED,
                f"History query for {repo} failed: {exc}",
                recoverable=True,
            ) from exc

        if response.status_code in (401, 403):
            raise ResolutionError(
                ErrorCode.UPSTREAM_FAILED,
                f"GitHub rejected the history query for {repo} (HTTP {response.status_code})",
                suggestion="Set GITFIRST__GITHUB__TOKEN to a valid access token.",
            )
        if response.status_code != 200:
            raise ResolutionError(
                ErrorCode.UPSTREAM_FAILED,
                f"History query for {repo} returned HTTP {response.status_code}",
                recoverable=response.status_code >= 500,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise _malformed(repo, "body is not JSON") from exc
        if not isinstance(payload, dict):
            raise _malformed(repo, "body is not an object")

        return self._parse(repo, payload)

    def _parse(self, repo: RepoRef, payload: dict[str, Any]) -> CommitHistoryPage:
        errors = payload.get("errors") or []
        if not isinstance(errors, list):
            raise _malformed(repo, "errors is not a list")
        if any(isinstance(e, dict) and e.get("type") == "NOT_FOUND" for e in errors):
            raise _not_found(repo, "Repository")

        data = payload.get("data")
        if not isinstance(data, dict):
            if errors:
                first = errors[0].get("message") if isinstance(errors[0], dict) else errors[0]
                raise ResolutionError(
                    ErrorCode.UPSTREAM_FAILED, f"History query for {repo} failed: {first}"
                )
            raise _malformed(repo, "missing data")

        try:
            repository = data.get("repository")
            if repository is None:
                raise _not_found(repo, "Repository")
            branch = repository.get("defaultBranchRef")
            if branch is None:
                raise _not_found(repo, "Default branch")
            history = (branch.get("target") or {}).get("history")
            if history is None:
                raise _not_found(repo, "Commit history")

            edges = history.get("edges") or []
            if not edges:
                raise _not_found(repo, "Commits")

            page_info = history["pageInfo"]
            commit_url = edges[0]["node"]["commitUrl"]
            if not isinstance(commit_url, str) or not commit_url:
                raise _malformed(repo, "commitUrl is not a string")

            return CommitHistoryPage(
                total_count=history["totalCount"],
                has_next_page=page_info["hasNextPage"],
                end_cursor=page_info.get("endCursor"),
                most_recent_commit_url=commit_url,
            )
        except (AttributeError, KeyError, TypeError, IndexError, ValidationError) as exc:
            raise _malformed(repo, f"missing or invalid field {exc}") from exc
