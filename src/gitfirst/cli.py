"""Command-line entry point.

Thin adapter: parses ``<owner>/<repo>``, resolves through the same cache
and resolver the server uses, and prints the URL to stdout.
"""

from __future__ import annotations

import asyncio

import structlog
import typer
from pydantic import ValidationError

from gitfirst.config import Settings
from gitfirst.errors import GitFirstError, InvalidInputError
from gitfirst.logging_setup import setup_logging
from gitfirst.models import RepoRef
from gitfirst.state import build_app_state

log = structlog.get_logger()

app = typer.Typer(
    help="Print the URL of a GitHub repository's first commit.",
    add_completion=False,
)


def _parse_repository(value: str) -> RepoRef:
    try:
        return RepoRef.parse(value)
    except InvalidInputError as exc:
        raise typer.BadParameter(f"{exc.message} ({exc.suggestion})") from exc


async def _first_commit(settings: Settings, repo: RepoRef, use_cache: bool) -> str:
    async with build_app_state(settings, use_cache=use_cache) as state:
        return await state.handler.first_commit(repo)


@app.command()
def main(
    repository: str = typer.Argument(
        ...,
        metavar="OWNER/REPO",
        help="Repository as owner/repo, or its https://github.com/ URL.",
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Skip the cache entirely."),
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="GITFIRST__LOGGING__LEVEL", help="Log level."
    ),
) -> None:
    """Resolve OWNER/REPO and print the URL of its first commit."""
    repo = _parse_repository(repository)
    try:
        settings = Settings(logging={"level": log_level.upper(), "format": "text"})
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint="configuration") from exc
    setup_logging(settings.logging)
    log.debug("cli_resolve", repo=str(repo), cache=not no_cache)

    try:
        url = asyncio.run(_first_commit(settings, repo, use_cache=not no_cache))
    except GitFirstError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        if exc.suggestion:
            typer.echo(exc.suggestion, err=True)
        if exc.recoverable:
            typer.echo("The failure may be temporary; try again.", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(url)


if __name__ == "__main__":
    app()
