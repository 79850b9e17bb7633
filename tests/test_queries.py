"""Tests for the GraphQL query builders."""

from __future__ import annotations

import pytest

from integrations.github.queries import PullRequestQuery, RepositorySearchQuery, SearchFilters


class TestRepositorySearchQuery:
    """Tests for RepositorySearchQuery."""

    def test_first_page_has_no_after_argument(self):
        """Test the first page is requested without a cursor."""
        query = RepositorySearchQuery().build(None, 10, SearchFilters(min_stars=100))
        assert "first: 10" in query
        assert "after:" not in query

    def test_cursor_is_rendered_as_after_argument(self):
        """Test later pages pass the previous end cursor."""
        query = RepositorySearchQuery().build("Y3Vyc29yOjEw", 10, SearchFilters())
        assert 'after: "Y3Vyc29yOjEw"' in query

    def test_search_string_contains_filters(self):
        """Test stars, language and sort qualifiers end up in the search string."""
        filters = SearchFilters(min_stars=500, language="python")
        query = RepositorySearchQuery().build(None, 5, filters)
        assert '"stars:>500 language:python sort:stars"' in query
        assert "type: REPOSITORY" in query

    def test_extra_qualifiers_are_appended(self):
        """Test extra qualifiers come before the sort qualifier."""
        filters = SearchFilters(extra=("archived:false",))
        search = RepositorySearchQuery()._build_search_string(filters)
        assert search == "stars:>0 archived:false sort:stars"

    def test_requests_metric_fields(self):
        """Test the query selects every counter the metrics need."""
        query = RepositorySearchQuery().build(None, 10, SearchFilters())
        for fragment in (
            "pageInfo",
            "hasNextPage",
            "endCursor",
            "stargazerCount",
            "primaryLanguage",
            "closedIssues: issues(states: CLOSED)",
            "mergedPullRequests: pullRequests(states: MERGED)",
            "history { totalCount }",
        ):
            assert fragment in query

    def test_language_is_escaped(self):
        """Test quotes in filter values cannot break the query."""
        filters = SearchFilters(language='py"thon')
        query = RepositorySearchQuery().build(None, 10, filters)
        assert 'language:py\\"thon' in query

    @pytest.mark.parametrize("page_size", [0, -1, 101])
    def test_page_size_out_of_range_raises(self, page_size):
        """Test page sizes outside 1..100 are rejected."""
        with pytest.raises(ValueError, match="page_size"):
            RepositorySearchQuery().build(None, page_size, SearchFilters())

    def test_page_size_limits_accepted(self):
        """Test page sizes 1 and 100 are accepted."""
        builder = RepositorySearchQuery()
        assert "first: 1)" in builder.build(None, 1, SearchFilters())
        assert "first: 100)" in builder.build(None, 100, SearchFilters())


class TestPullRequestQuery:
    """Tests for PullRequestQuery."""

    def test_builds_repository_query(self):
        """Test owner, name and states are rendered."""
        filters = SearchFilters(owner="octo", name="hello", states=("MERGED", "CLOSED"))
        query = PullRequestQuery().build(None, 50, filters)
        assert 'repository(owner: "octo", name: "hello")' in query
        assert "states: [MERGED, CLOSED]" in query
        assert "first: 50" in query
        assert "after:" not in query

    def test_cursor_is_rendered(self):
        """Test later pages pass the previous end cursor."""
        filters = SearchFilters(owner="octo", name="hello")
        query = PullRequestQuery().build("abc", 50, filters)
        assert 'after: "abc"' in query

    def test_requests_review_fields(self):
        """Test the query selects the fields the review metrics need."""
        filters = SearchFilters(owner="octo", name="hello")
        query = PullRequestQuery().build(None, 50, filters)
        for fragment in ("createdAt", "closedAt", "bodyText", "reviews { totalCount }"):
            assert fragment in query

    def test_requires_owner_and_name(self):
        """Test a pull request query needs a repository."""
        with pytest.raises(ValueError, match="owner and name"):
            PullRequestQuery().build(None, 50, SearchFilters(owner="octo"))

    def test_unknown_state_raises(self):
        """Test unknown pull request states are rejected."""
        filters = SearchFilters(owner="octo", name="hello", states=("DRAFT",))
        with pytest.raises(ValueError, match="DRAFT"):
            PullRequestQuery().build(None, 50, filters)

    def test_page_size_out_of_range_raises(self):
        """Test page sizes above 100 are rejected."""
        filters = SearchFilters(owner="octo", name="hello")
        with pytest.raises(ValueError):
            PullRequestQuery().build(None, 101, filters)
