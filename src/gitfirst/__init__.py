"""Resolve and serve the URL of a repository's first commit."""

__version__ = "0.1.0"
