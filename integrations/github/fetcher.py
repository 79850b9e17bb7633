"""Bounded retry around the GraphQL transport."""

from __future__ import annotations

import math
import time
from typing import Any

import requests

from models import Colors

from .github import GraphQLAPI
from .models import (
    TRANSIENT_STATUS_CODES,
    ApplicationError,
    FatalError,
    FetchConfig,
    FetchOutcome,
    GitHubAPIError,
    GitHubNetworkError,
    GitHubRateLimitError,
    Success,
    TransientError,
)


class ResilientFetcher:
    """Run one GraphQL query with linear backoff on transient failures.

    ``fetch`` never raises for HTTP or network problems: every failure is
    reported as a :data:`FetchOutcome`. Only :class:`Success` carries data.
    """

    def __init__(
        self,
        transport: GraphQLAPI,
        config: FetchConfig | None = None,
        colors: Any = Colors,
    ) -> None:
        self.transport = transport
        self.config = config or FetchConfig()
        self.colors = colors

    def _backoff_seconds(self, attempt: int) -> float:
        return self.config.base_backoff_ms * attempt / 1000.0

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is None:
            return False
        try:
            return int(remaining) == 0
        except (TypeError, ValueError):
            return False

    @staticmethod
    def _retry_after_seconds(response: requests.Response) -> float | None:
        """Wait requested by a secondary rate limit, or None without ``Retry-After``."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is None:
            return None
        try:
            seconds = float(retry_after)
        except (TypeError, ValueError):
            # HTTP-date form; fall back to the linear backoff
            return 0.0
        return seconds if math.isfinite(seconds) and seconds > 0 else 0.0

    def _classify_response(self, response: requests.Response) -> FetchOutcome:
        status = response.status_code
        if status in (403, 429):
            retry_after = self._retry_after_seconds(response)
            if retry_after is not None:
                return TransientError(
                    GitHubRateLimitError(
                        f"Secondary rate limit hit (status {status}, retry after {retry_after:g}s)"
                    ),
                    retry_after=retry_after,
                )
        if status in TRANSIENT_STATUS_CODES:
            return TransientError(GitHubAPIError(f"GitHub GraphQL API returned {status}"))
        if status == 403 and self._is_rate_limited(response):
            reset = response.headers.get("X-RateLimit-Reset", "unknown")
            return FatalError(GitHubRateLimitError(f"Rate limit exhausted (resets at {reset})"))
        if status != 200:
            return FatalError(
                GitHubAPIError(
                    f"GraphQL API request failed with status {status}: {response.text}"
                )
            )

        try:
            body = response.json()
        except ValueError as exc:
            return FatalError(GitHubAPIError(f"GraphQL API returned invalid JSON: {exc}"))
        if not isinstance(body, dict):
            return FatalError(GitHubAPIError("GraphQL API returned a non-object body"))

        # errors must be checked before data is trusted
        if body.get("errors"):
            errors = body["errors"]
            return ApplicationError(errors if isinstance(errors, list) else [errors])
        return Success(body)

    def _attempt(self, query: str) -> FetchOutcome:
        try:
            response = self.transport.post(query, timeout=self.config.request_timeout)
        except requests.exceptions.Timeout as exc:
            return TransientError(exc)
        except requests.exceptions.ConnectionError as exc:
            return TransientError(exc)
        except requests.exceptions.RequestException as exc:
            return FatalError(GitHubAPIError(f"GraphQL request could not be sent: {exc}"))
        return self._classify_response(response)

    def fetch(self, query: str) -> FetchOutcome:
        """Send *query*, retrying transient failures up to ``max_attempts`` times."""
        max_attempts = self.config.max_attempts
        last_cause: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            outcome = self._attempt(query)
            if not isinstance(outcome, TransientError):
                return outcome

            last_cause = outcome.cause
            if attempt == max_attempts:
                break

            delay = max(self._backoff_seconds(attempt), outcome.retry_after or 0.0)
            print(
                f"{self.colors.WARNING}⚠️  Attempt {attempt}/{max_attempts} failed "
                f"({last_cause}). Retrying in {delay:.1f}s...{self.colors.RESET}"
            )
            time.sleep(delay)

        error = GitHubNetworkError(
            f"GraphQL request failed after {max_attempts} attempt"
            f"{'s' if max_attempts != 1 else ''}: {last_cause}"
        )
        error.__cause__ = last_cause
        return FatalError(error)
