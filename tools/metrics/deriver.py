"""Metric derivation for normalized repository and pull request records.

Both derivers are pure and total: a missing or malformed number counts as
zero and nothing here raises. Returning ``None`` means the record is
excluded by an inclusion filter.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Protocol

from .records import PullRequestRecord, RepositoryRecord

# Pull requests closed faster than this are treated as noise
DEFAULT_MIN_REVIEW_HOURS = 1.0

# Popularity filter for repositories whose pull requests are studied
DEFAULT_MIN_PULL_REQUESTS = 100


class MetricDeriver(Protocol):
    """Strategy turning one normalized record into a derived record."""

    def derive(self, raw: dict[str, Any]) -> Any | None: ...


def _count(raw: dict[str, Any], key: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return 0


def _text(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else ""


def _timestamp(raw: dict[str, Any], key: str) -> datetime | None:
    value = raw.get(key)
    return value if isinstance(value, datetime) else None


def engagement_score(commits: int, merged_pull_requests: int, closed_issues: int) -> int:
    return commits + merged_pull_requests + closed_issues


def issue_ratio(closed_issues: int, total_issues: int) -> float:
    if total_issues <= 0:
        return 0.0
    return closed_issues / total_issues


def review_time_hours(created_at: datetime | None, closed_at: datetime | None) -> float:
    """Hours between creation and closing; 0.0 when either side is unknown."""
    if created_at is None or closed_at is None:
        return 0.0
    try:
        return (closed_at - created_at).total_seconds() / 3600
    except TypeError:
        # naive vs aware timestamps
        return 0.0


class RepositoryMetricDeriver:
    """Derive ranking metrics for repositories."""

    def __init__(self, min_pull_requests: int = 0) -> None:
        self.min_pull_requests = min_pull_requests

    def derive(self, raw: dict[str, Any]) -> RepositoryRecord | None:
        pull_requests = _count(raw, "pull_requests")
        if pull_requests < self.min_pull_requests:
            return None

        commits = _count(raw, "commits")
        merged = _count(raw, "merged_pull_requests")
        closed_issues = _count(raw, "closed_issues")
        total_issues = _count(raw, "total_issues")

        return RepositoryRecord(
            name=_text(raw, "name"),
            owner=_text(raw, "owner"),
            url=_text(raw, "url"),
            description=_text(raw, "description"),
            primary_language=_text(raw, "primary_language"),
            stars=_count(raw, "stars"),
            forks=_count(raw, "forks"),
            created_at=_timestamp(raw, "created_at"),
            updated_at=_timestamp(raw, "updated_at"),
            total_issues=total_issues,
            closed_issues=closed_issues,
            pull_requests=pull_requests,
            merged_pull_requests=merged,
            releases=_count(raw, "releases"),
            commits=commits,
            engagement_score=engagement_score(commits, merged, closed_issues),
            issue_ratio=issue_ratio(closed_issues, total_issues),
        )


class PullRequestMetricDeriver:
    """Derive review metrics for pull requests.

    Pull requests whose review time is below ``min_review_hours`` are
    excluded, and so are those without a closing timestamp.
    """

    def __init__(self, min_review_hours: float = DEFAULT_MIN_REVIEW_HOURS) -> None:
        self.min_review_hours = min_review_hours

    def derive(self, raw: dict[str, Any]) -> PullRequestRecord | None:
        created_at = _timestamp(raw, "created_at")
        closed_at = _timestamp(raw, "closed_at")
        hours = review_time_hours(created_at, closed_at)
        if created_at is None or closed_at is None or hours < self.min_review_hours:
            return None

        return PullRequestRecord(
            repository=_text(raw, "repository"),
            number=_count(raw, "number"),
            title=_text(raw, "title"),
            url=_text(raw, "url"),
            created_at=created_at,
            closed_at=closed_at,
            merged=raw.get("merged") is True,
            additions=_count(raw, "additions"),
            deletions=_count(raw, "deletions"),
            changed_files=_count(raw, "changed_files"),
            reviews=_count(raw, "reviews"),
            comments=_count(raw, "comments"),
            participants=_count(raw, "participants"),
            body_length=len(_text(raw, "body")),
            review_time_hours=hours,
        )
