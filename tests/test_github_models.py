"""Tests for the GitHub integration models module."""

import pytest

from integrations.github.models import (
    BASE_BACKOFF_MS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RECORD_CAP,
    DEFAULT_TIMEOUT,
    GITHUB_GRAPHQL_URL,
    MAX_ATTEMPTS,
    MAX_PAGE_SIZE,
    TRANSIENT_STATUS_CODES,
    ApplicationError,
    FatalError,
    FetchConfig,
    GitHubAPIError,
    GitHubNetworkError,
    GitHubQueryError,
    GitHubRateLimitError,
    GitHubSchemaError,
    Success,
    TransientError,
)


class TestConstants:
    """Tests for module constants."""

    def test_github_graphql_url(self):
        """Test GITHUB_GRAPHQL_URL is correct."""
        assert GITHUB_GRAPHQL_URL == "https://api.github.com/graphql"

    def test_retry_defaults(self):
        """Test the default retry policy is three attempts, 2s linear backoff."""
        assert MAX_ATTEMPTS == 3
        assert BASE_BACKOFF_MS == 2000
        assert DEFAULT_TIMEOUT == 30.0

    def test_pagination_defaults(self):
        """Test pagination defaults."""
        assert MAX_PAGE_SIZE == 100
        assert DEFAULT_PAGE_SIZE == 10
        assert DEFAULT_RECORD_CAP == 1000

    def test_transient_status_codes(self):
        """Test throttling and gateway statuses are transient."""
        assert {429, 500, 502, 503, 504} == set(TRANSIENT_STATUS_CODES)
        assert 401 not in TRANSIENT_STATUS_CODES
        assert 404 not in TRANSIENT_STATUS_CODES


class TestExceptions:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "error_class",
        [GitHubNetworkError, GitHubRateLimitError, GitHubQueryError, GitHubSchemaError],
    )
    def test_subclasses_api_error(self, error_class):
        """Test every GitHub error can be caught as GitHubAPIError."""
        assert issubclass(error_class, GitHubAPIError)

    def test_query_error_message(self):
        """Test GitHubQueryError joins the GraphQL error messages."""
        error = GitHubQueryError([{"message": "Field 'foo' doesn't exist"}, "boom"])
        assert str(error) == "GraphQL errors: Field 'foo' doesn't exist; boom"
        assert len(error.errors) == 2


class TestFetchConfig:
    """Tests for FetchConfig."""

    def test_defaults(self):
        """Test FetchConfig uses module defaults."""
        config = FetchConfig()
        assert config.max_attempts == MAX_ATTEMPTS
        assert config.base_backoff_ms == BASE_BACKOFF_MS
        assert config.request_timeout == DEFAULT_TIMEOUT

    def test_zero_attempts_raises(self):
        """Test at least one attempt is required."""
        with pytest.raises(ValueError, match="max_attempts"):
            FetchConfig(max_attempts=0)

    def test_negative_backoff_raises(self):
        """Test a negative backoff is rejected."""
        with pytest.raises(ValueError, match="base_backoff_ms"):
            FetchConfig(base_backoff_ms=-1)

    def test_zero_backoff_allowed(self):
        """Test retries without waiting are allowed."""
        assert FetchConfig(base_backoff_ms=0).base_backoff_ms == 0

    def test_non_positive_timeout_raises(self):
        """Test the request timeout must be positive."""
        with pytest.raises(ValueError, match="request_timeout"):
            FetchConfig(request_timeout=0)


class TestFetchOutcomes:
    """Tests for the fetch outcome variants."""

    def test_application_error_cause(self):
        """Test ApplicationError exposes its errors as a GitHubQueryError."""
        outcome = ApplicationError([{"message": "bad query"}])
        assert isinstance(outcome.cause, GitHubQueryError)
        assert "bad query" in str(outcome.cause)

    def test_outcomes_are_distinct(self):
        """Test each variant is its own type."""
        outcomes = [
            Success({"data": {}}),
            ApplicationError([]),
            TransientError(GitHubAPIError("502")),
            FatalError(GitHubAPIError("401")),
        ]
        assert len({type(outcome) for outcome in outcomes}) == 4
