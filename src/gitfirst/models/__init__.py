from __future__ import annotations

from gitfirst.models.history import CommitHistoryPage
from gitfirst.models.repo import RepoRef

__all__ = [
    "RepoRef",
    "CommitHistoryPage",
]
