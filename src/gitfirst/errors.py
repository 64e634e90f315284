"""Typed errors raised by the resolver and its collaborators.

Every failure that reaches a caller is a ``GitFirstError`` carrying an
``ErrorCode``. Entry points map codes to responses: ``INVALID_INPUT`` is the
caller's fault (HTTP 400, CLI usage error); everything else is a resolution
failure (HTTP 500, CLI exit 1). Cache errors never become ``GitFirstError``.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    REPOSITORY_NOT_FOUND = "REPOSITORY_NOT_FOUND"
    UPSTREAM_FAILED = "UPSTREAM_FAILED"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"


class GitFirstError(Exception):
    """Root exception for every error surfaced to callers."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable


class InvalidInputError(GitFirstError):
    """A path or argument that does not name exactly one repository."""

    def __init__(self, message: str, suggestion: str = "") -> None:
        super().__init__(ErrorCode.INVALID_INPUT, message, suggestion)


class ResolutionError(GitFirstError):
    """The first commit could not be determined.

    Raised for transport failures, missing repositories or branches, and
    responses that lack the fields the history query asks for.
    """
