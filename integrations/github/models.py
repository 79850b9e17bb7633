"""
Models and constants for the GitHub integration.

This module contains exception classes, fetch outcomes, constants and
configuration values used by the GraphQL client and the pagination driver.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# =============================================================================
# Constants
# =============================================================================

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_GRAPHQL_URL = f"{GITHUB_API_BASE_URL}/graphql"

USER_AGENT = "ghmetrics"

# Timeouts (seconds)
DEFAULT_TIMEOUT = 30.0

# Retry configuration
MAX_ATTEMPTS = 3
BASE_BACKOFF_MS = 2000  # Linear backoff: base * attempt number

# Upstream overload / throttling statuses worth another attempt
TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Pagination defaults
MAX_PAGE_SIZE = 100  # GraphQL connection limit for `first`
DEFAULT_PAGE_SIZE = 10
DEFAULT_PR_PAGE_SIZE = 50
DEFAULT_RECORD_CAP = 1000

# Pull request states accepted by the GraphQL PullRequestState enum
PULL_REQUEST_STATES = ("OPEN", "CLOSED", "MERGED")
DEFAULT_PR_STATES = ("MERGED", "CLOSED")


# =============================================================================
# Exceptions
# =============================================================================


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails."""


class GitHubNetworkError(GitHubAPIError):
    """Raised when a network error occurs (DNS, connection, timeout)."""


class GitHubRateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded."""


class GitHubQueryError(GitHubAPIError):
    """Raised when GitHub rejects a query with an ``errors`` payload."""

    def __init__(self, errors: list[Any]) -> None:
        self.errors = errors
        messages = [
            err.get("message", str(err)) if isinstance(err, dict) else str(err) for err in errors
        ]
        super().__init__("GraphQL errors: " + "; ".join(messages))


class GitHubSchemaError(GitHubAPIError):
    """Raised when a response page lacks a required field."""


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class FetchConfig:
    """Retry and timeout policy for a single GraphQL query."""

    max_attempts: int = MAX_ATTEMPTS
    base_backoff_ms: int = BASE_BACKOFF_MS
    request_timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got: {self.max_attempts}")
        if self.base_backoff_ms < 0:
            raise ValueError(f"base_backoff_ms must be >= 0, got: {self.base_backoff_ms}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got: {self.request_timeout}")


# =============================================================================
# Fetch outcomes
# =============================================================================


@dataclass(frozen=True)
class Success:
    """A page that came back without an ``errors`` key."""

    page: dict[str, Any]


@dataclass(frozen=True)
class ApplicationError:
    """GitHub answered, but rejected the query itself."""

    errors: list[Any]

    @property
    def cause(self) -> GitHubQueryError:
        return GitHubQueryError(self.errors)


@dataclass(frozen=True)
class TransientError:
    """A failed attempt that may succeed when repeated.

    ``retry_after`` is the server-requested wait in seconds, if any.
    """

    cause: Exception
    retry_after: float | None = None


@dataclass(frozen=True)
class FatalError:
    """A failure that must not be retried."""

    cause: Exception


FetchOutcome = Success | ApplicationError | TransientError | FatalError
