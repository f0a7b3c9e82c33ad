"""Exception types raised by the sourcing pipeline."""

from __future__ import annotations

__all__ = ["ConfigurationError", "GitlabNodesError", "RemoteFetchError"]


class GitlabNodesError(Exception):
    """Base class for all gitlab-nodes errors."""


class ConfigurationError(GitlabNodesError):
    """Raised when configuration is missing or invalid (e.g. no token)."""


class RemoteFetchError(GitlabNodesError):
    """Raised when a GitLab API call fails.

    Carries the identifier (numeric id or path) that triggered the call so
    callers can report which branch of the hierarchy failed.
    """

    def __init__(self, id_or_path: int | str, message: str) -> None:
        super().__init__(message)
        self.id_or_path = id_or_path
