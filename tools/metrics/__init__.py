"""Metric derivation for collected GitHub data."""

from __future__ import annotations

from .deriver import (
    DEFAULT_MIN_PULL_REQUESTS,
    DEFAULT_MIN_REVIEW_HOURS,
    PullRequestMetricDeriver,
    RepositoryMetricDeriver,
)
from .records import PullRequestRecord, RepositoryRecord

__all__ = [
    "DEFAULT_MIN_PULL_REQUESTS",
    "DEFAULT_MIN_REVIEW_HOURS",
    "PullRequestMetricDeriver",
    "PullRequestRecord",
    "RepositoryMetricDeriver",
    "RepositoryRecord",
]
