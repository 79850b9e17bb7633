"""Pytest configuration and shared fixtures for ghmetrics tests."""

from __future__ import annotations

import os
import sys
from unittest.mock import MagicMock, patch

import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def mock_github_token():
    """Provide a mock GitHub token."""
    return "ghp_test_token_1234567890"


@pytest.fixture
def mock_env_token(mock_github_token):
    """Set up environment with mock GitHub token."""
    with patch.dict(os.environ, {"GITHUB_TOKEN": mock_github_token}):
        yield mock_github_token


@pytest.fixture
def mock_colors():
    """Create a mock Colors class for testing."""
    mock = MagicMock()
    mock.HEADER = ""
    mock.SUCCESS = ""
    mock.WARNING = ""
    mock.ERROR = ""
    mock.INFO = ""
    mock.PROGRESS = ""
    mock.REPO_NAME = ""
    mock.STARS = ""
    mock.METRIC = ""
    mock.URL = ""
    mock.DESCRIPTION = ""
    mock.RESET = ""
    return mock


def make_repository_node(index: int, **overrides):
    """Build a repository search node the way the GraphQL API returns it."""
    node = {
        "name": f"repo{index}",
        "owner": {"login": f"owner{index}"},
        "description": f"Repository number {index}",
        "url": f"https://github.com/owner{index}/repo{index}",
        "stargazerCount": 10000 - index,
        "forkCount": 100 + index,
        "createdAt": "2020-01-01T00:00:00Z",
        "updatedAt": "2024-12-20T10:00:00Z",
        "primaryLanguage": {"name": "Python"},
        "issues": {"totalCount": 200},
        "closedIssues": {"totalCount": 150},
        "pullRequests": {"totalCount": 300},
        "mergedPullRequests": {"totalCount": 250},
        "releases": {"totalCount": 12},
        "defaultBranchRef": {"target": {"history": {"totalCount": 5000}}},
    }
    node.update(overrides)
    return node


def make_pull_request_node(number: int, /, **overrides):
    """Build a pull request node the way the GraphQL API returns it."""
    node = {
        "number": number,
        "title": f"Change {number}",
        "url": f"https://github.com/owner/repo/pull/{number}",
        "bodyText": "Fixes the parser",
        "createdAt": "2024-01-01T10:00:00Z",
        "closedAt": "2024-01-01T12:00:00Z",
        "merged": True,
        "additions": 10,
        "deletions": 2,
        "changedFiles": 1,
        "reviews": {"totalCount": 2},
        "comments": {"totalCount": 3},
        "participants": {"totalCount": 4},
    }
    node.update(overrides)
    return node


def make_search_page(nodes, has_next_page=False, end_cursor=None):
    """Wrap repository nodes in a search connection page."""
    return {
        "data": {
            "search": {
                "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
                "nodes": nodes,
            }
        }
    }


def make_pull_request_page(nodes, has_next_page=False, end_cursor=None):
    """Wrap pull request nodes in a repository connection page."""
    return {
        "data": {
            "repository": {
                "pullRequests": {
                    "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
                    "nodes": nodes,
                }
            }
        }
    }


def make_response(status_code=200, json_data=None, headers=None, text=""):
    """Create a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def repository_pages():
    """Five search pages of ten repositories each, chained by cursor."""
    pages = []
    for page in range(5):
        nodes = [make_repository_node(page * 10 + i) for i in range(10)]
        has_next = page < 4
        pages.append(make_search_page(nodes, has_next, f"cursor{page + 1}" if has_next else None))
    return pages
