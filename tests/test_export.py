"""Tests for the CSV and JSON writers."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone

import pytest

from tools.export import write_csv, write_json
from tools.metrics import PullRequestRecord, RepositoryRecord
from tools.metrics.records import field_names


@pytest.fixture
def repository_record():
    """Create a derived repository record."""
    return RepositoryRecord(
        name="hello",
        owner="octo",
        url="https://github.com/octo/hello",
        description="Hello, world",
        primary_language="",
        stars=1500,
        forks=20,
        created_at=datetime(2020, 5, 1, 8, 30, tzinfo=timezone.utc),
        updated_at=None,
        total_issues=10,
        closed_issues=5,
        pull_requests=120,
        merged_pull_requests=100,
        releases=2,
        commits=900,
        engagement_score=1005,
        issue_ratio=0.5,
    )


class TestWriteCsv:
    """Tests for write_csv."""

    def test_writes_header_and_rows(self, tmp_path, repository_record):
        """Test one row per record with a header of field names."""
        path = tmp_path / "repos.csv"

        count = write_csv([repository_record], path)

        assert count == 1
        with path.open(newline="", encoding="utf-8") as handle:
            rows = list(csv.reader(handle))
        assert rows[0] == field_names(RepositoryRecord)
        row = dict(zip(rows[0], rows[1]))
        assert row["name"] == "hello"
        assert row["description"] == "Hello, world"
        assert row["created_at"] == "2020-05-01 08:30:00"
        assert row["updated_at"] == ""
        assert row["issue_ratio"] == "0.5000"
        assert row["primary_language"] == ""

    def test_empty_with_record_type(self, tmp_path):
        """Test an empty run still produces a header."""
        path = tmp_path / "pulls.csv"

        assert write_csv([], path, record_type=PullRequestRecord) == 0
        assert path.read_text(encoding="utf-8").strip() == ",".join(
            field_names(PullRequestRecord)
        )

    def test_empty_without_record_type_raises(self, tmp_path):
        """Test the header cannot be guessed from nothing."""
        with pytest.raises(ValueError, match="record_type"):
            write_csv([], tmp_path / "out.csv")

    def test_creates_parent_directories(self, tmp_path, repository_record):
        """Test missing output directories are created."""
        path = tmp_path / "nested" / "dir" / "repos.csv"
        write_csv([repository_record], path)
        assert path.exists()


class TestWriteJson:
    """Tests for write_json."""

    def test_writes_document(self, tmp_path, repository_record):
        """Test the document carries count, records and metadata."""
        path = tmp_path / "repos.json"

        count = write_json([repository_record], path, metadata={"complete": False})

        assert count == 1
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["count"] == 1
        assert document["metadata"] == {"complete": False}
        record = document["records"][0]
        assert record["name"] == "hello"
        assert record["created_at"] == "2020-05-01T08:30:00+00:00"
        assert record["updated_at"] is None

    def test_without_metadata(self, tmp_path):
        """Test metadata is omitted when not given."""
        path = tmp_path / "empty.json"
        write_json([], path)
        assert json.loads(path.read_text(encoding="utf-8")) == {"count": 0, "records": []}
