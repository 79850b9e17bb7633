"""GraphQL query builders for repository search and pull request listing."""

from __future__ import annotations

import json
from dataclasses import dataclass

from .models import DEFAULT_PR_STATES, MAX_PAGE_SIZE, PULL_REQUEST_STATES


@dataclass(frozen=True)
class SearchFilters:
    """Fixed filter criteria rendered into every page query of a run."""

    min_stars: int = 0
    language: str = ""
    sort: str = "stars"
    states: tuple[str, ...] = DEFAULT_PR_STATES
    owner: str = ""
    name: str = ""
    extra: tuple[str, ...] = ()


def _literal(value: str) -> str:
    """Render *value* as a GraphQL string literal."""
    # JSON string escaping is a valid GraphQL string literal
    return json.dumps(value)


def _check_page_size(page_size: int) -> int:
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got: {page_size}")
    return page_size


def _after_clause(cursor: str | None) -> str:
    return f", after: {_literal(cursor)}" if cursor is not None else ""


class RepositorySearchQuery:
    """Builds the repository search query for one page."""

    def _build_search_string(self, filters: SearchFilters) -> str:
        parts = [f"stars:>{filters.min_stars}"]
        if filters.language:
            parts.append(f"language:{filters.language}")
        parts.extend(filters.extra)
        if filters.sort:
            parts.append(f"sort:{filters.sort}")
        return " ".join(parts)

    def build(self, cursor: str | None, page_size: int, filters: SearchFilters) -> str:
        page_size = _check_page_size(page_size)
        search = _literal(self._build_search_string(filters))
        return f"""
        query {{
          search(query: {search}, type: REPOSITORY, first: {page_size}{_after_clause(cursor)}) {{
            pageInfo {{
              hasNextPage
              endCursor
            }}
            nodes {{
              ... on Repository {{
                name
                owner {{ login }}
                description
                url
                stargazerCount
                forkCount
                createdAt
                updatedAt
                primaryLanguage {{ name }}
                issues {{ totalCount }}
                closedIssues: issues(states: CLOSED) {{ totalCount }}
                pullRequests {{ totalCount }}
                mergedPullRequests: pullRequests(states: MERGED) {{ totalCount }}
                releases {{ totalCount }}
                defaultBranchRef {{
                  target {{
                    ... on Commit {{
                      history {{ totalCount }}
                    }}
                  }}
                }}
              }}
            }}
          }}
        }}
        """


class PullRequestQuery:
    """Builds the pull request listing query for one repository page."""

    def _build_states(self, states: tuple[str, ...]) -> str:
        unknown = [state for state in states if state not in PULL_REQUEST_STATES]
        if unknown:
            raise ValueError(f"Unknown pull request state(s): {', '.join(unknown)}")
        return ", ".join(states)

    def build(self, cursor: str | None, page_size: int, filters: SearchFilters) -> str:
        page_size = _check_page_size(page_size)
        if not filters.owner or not filters.name:
            raise ValueError("Pull request queries need both owner and name")
        states = self._build_states(filters.states)
        return f"""
        query {{
          repository(owner: {_literal(filters.owner)}, name: {_literal(filters.name)}) {{
            pullRequests(first: {page_size}{_after_clause(cursor)}, states: [{states}], orderBy: {{field: CREATED_AT, direction: DESC}}) {{
              pageInfo {{
                hasNextPage
                endCursor
              }}
              nodes {{
                number
                title
                url
                bodyText
                createdAt
                closedAt
                merged
                additions
                deletions
                changedFiles
                reviews {{ totalCount }}
                comments {{ totalCount }}
                participants {{ totalCount }}
              }}
            }}
          }}
        }}
        """
