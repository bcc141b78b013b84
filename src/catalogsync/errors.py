"""Run-level error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catalogsync.models.run import RunSummary

RATE_LIMIT_STATUSES = frozenset({403, 429})


class CatalogSyncError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(CatalogSyncError):
    """Raised before any network call when required configuration is missing."""


class GitHubAPIError(CatalogSyncError):
    """Non-success response from the GitHub API."""

    def __init__(self, status_code: int, message: str = "", *, retry_after: float | None = None) -> None:
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message or f"GitHub API returned HTTP {status_code}")

    @property
    def is_rate_limit(self) -> bool:
        return self.status_code in RATE_LIMIT_STATUSES


class RateLimitedError(GitHubAPIError):
    """GitHub answered 403/429; carries the Retry-After hint when present."""

    def __init__(self, status_code: int, message: str = "", *, retry_after: float | None = None) -> None:
        super().__init__(
            status_code,
            message or f"GitHub API rate limit exceeded (HTTP {status_code})",
            retry_after=retry_after,
        )


class StoreError(CatalogSyncError):
    """Persisting a record set failed; nothing was durably committed.

    ``summary`` holds whatever the run computed before the failure so the
    caller can still report it.
    """

    def __init__(self, message: str, *, summary: RunSummary | None = None) -> None:
        self.summary = summary
        super().__init__(message)


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return True when ``exc`` is a GitHub 403/429 response."""

    return isinstance(exc, GitHubAPIError) and exc.is_rate_limit
