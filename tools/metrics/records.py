"""Derived records produced by the metric derivers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any


def _export_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class RepositoryRecord:
    """One repository with its counters and ranking metrics."""

    name: str
    owner: str
    url: str
    description: str
    primary_language: str
    stars: int
    forks: int
    created_at: datetime | None
    updated_at: datetime | None
    total_issues: int
    closed_issues: int
    pull_requests: int
    merged_pull_requests: int
    releases: int
    commits: int

    # Derived metrics
    engagement_score: int
    issue_ratio: float

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}" if self.owner else self.name

    def to_dict(self) -> dict[str, Any]:
        return {key: _export_value(value) for key, value in asdict(self).items()}


@dataclass(frozen=True)
class PullRequestRecord:
    """One closed or merged pull request with its review metrics."""

    repository: str
    number: int
    title: str
    url: str
    created_at: datetime
    closed_at: datetime
    merged: bool
    additions: int
    deletions: int
    changed_files: int
    reviews: int
    comments: int
    participants: int

    # Derived metrics
    body_length: int
    review_time_hours: float

    def to_dict(self) -> dict[str, Any]:
        return {key: _export_value(value) for key, value in asdict(self).items()}


DerivedRecord = RepositoryRecord | PullRequestRecord


def field_names(record_type: type) -> list[str]:
    """Column order for exporting *record_type*."""
    return [f.name for f in fields(record_type)]
