#!/usr/bin/env python3

"""Transport for GitHub's GraphQL API."""

from __future__ import annotations

import os
from typing import Any

import requests

from .models import DEFAULT_TIMEOUT, GITHUB_GRAPHQL_URL, USER_AGENT, GitHubAPIError


class GraphQLAPI:
    """Thin wrapper around the GitHub GraphQL endpoint.

    It only carries the query and the authentication headers; classifying
    the response is left to :class:`~integrations.github.fetcher.ResilientFetcher`.
    """

    def __init__(self, token: str | None = None, graphql_url: str = GITHUB_GRAPHQL_URL) -> None:
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise GitHubAPIError("GITHUB_TOKEN environment variable not set.")
        self.graphql_url = graphql_url

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    def _build_payload(self, query: str) -> dict[str, Any]:
        return {"query": query}

    def post(self, query: str, timeout: float = DEFAULT_TIMEOUT) -> requests.Response:
        """Send *query* and return the raw HTTP response.

        Network failures (``requests.RequestException``) propagate to the caller.
        """
        return requests.post(
            self.graphql_url,
            headers=self._headers,
            json=self._build_payload(query),
            timeout=timeout,
        )
