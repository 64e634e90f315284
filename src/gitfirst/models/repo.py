from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, field_validator

from gitfirst.errors import InvalidInputError

_URL_PREFIX = re.compile(r"^(?:https?://)?(?:www\.)?github\.com/", re.IGNORECASE)


class RepoRef(BaseModel):
    """A repository on the hosting provider, addressed as owner/name."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @field_validator("owner", "name")
    @classmethod
    def validate_segment(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        if "/" in v:
            raise ValueError(f"must not contain '/': {v!r}")
        return v

    @property
    def cache_key(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.cache_key

    @classmethod
    def parse(cls, value: str) -> RepoRef:
        """Parse ``owner/name``, optionally given as a full repository URL.

        Raises:
            InvalidInputError: *value* does not name exactly one repository.
        """
        stripped = _URL_PREFIX.sub("", value.strip()).strip("/")
        if stripped.endswith(".git"):
            stripped = stripped[: -len(".git")]
        parts = stripped.split("/")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            raise InvalidInputError(
                f"Expected <owner>/<repo>, got {value!r}",
                suggestion="e.g. torvalds/linux",
            )
        return cls(owner=parts[0], name=parts[1])
