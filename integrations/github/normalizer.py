"""Turn raw GraphQL pages into flat records with documented defaults.

A :class:`RecordSchema` describes where the connection lives inside
``data`` and how each record field is read from a node. Required fields
identify the record; when one is missing the page does not match the
schema and the whole page is rejected with :class:`GitHubSchemaError`.
Optional fields resolve to their default when any step of their path is
absent or null.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .models import GitHubSchemaError

UNKNOWN_LANGUAGE = ""

_MISSING = object()


def dig(node: Any, path: Sequence[str], default: Any = None) -> Any:
    """Follow *path* through nested mappings, returning *default* on any gap."""
    current = node
    for key in path:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def parse_timestamp(value: Any) -> datetime | None:
    """Parse GitHub's ISO-8601 timestamps (``2024-01-01T00:00:00Z``)."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    return 0


def _as_key(value: Any) -> int | None:
    # identifying numbers must be real integers; None marks the field missing
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_bool(value: Any) -> bool:
    return value is True


@dataclass(frozen=True)
class FieldSpec:
    """How one record field is read from a node."""

    path: tuple[str, ...]
    convert: Callable[[Any], Any] = lambda value: value
    default: Any = None
    required: bool = False


def required(*path: str, convert: Callable[[Any], Any] = lambda value: value) -> FieldSpec:
    return FieldSpec(path=path, convert=convert, required=True)


def optional(
    *path: str, convert: Callable[[Any], Any] = lambda value: value, default: Any = None
) -> FieldSpec:
    return FieldSpec(path=path, convert=convert, default=default)


@dataclass(frozen=True)
class RecordSchema:
    """Location of a connection inside ``data`` and the fields of its nodes."""

    name: str
    connection_path: tuple[str, ...]
    fields: dict[str, FieldSpec] = field(default_factory=dict)


REPOSITORY_SCHEMA = RecordSchema(
    name="repository",
    connection_path=("search",),
    fields={
        "name": required("name", convert=_as_str),
        "owner": required("owner", "login", convert=_as_str),
        "url": required("url", convert=_as_str),
        "description": optional("description", convert=_as_str, default=""),
        "primary_language": optional(
            "primaryLanguage", "name", convert=_as_str, default=UNKNOWN_LANGUAGE
        ),
        "stars": optional("stargazerCount", convert=_as_int, default=0),
        "forks": optional("forkCount", convert=_as_int, default=0),
        "created_at": optional("createdAt", convert=parse_timestamp),
        "updated_at": optional("updatedAt", convert=parse_timestamp),
        "total_issues": optional("issues", "totalCount", convert=_as_int, default=0),
        "closed_issues": optional("closedIssues", "totalCount", convert=_as_int, default=0),
        "pull_requests": optional("pullRequests", "totalCount", convert=_as_int, default=0),
        "merged_pull_requests": optional(
            "mergedPullRequests", "totalCount", convert=_as_int, default=0
        ),
        "releases": optional("releases", "totalCount", convert=_as_int, default=0),
        "commits": optional(
            "defaultBranchRef", "target", "history", "totalCount", convert=_as_int, default=0
        ),
    },
)

PULL_REQUEST_SCHEMA = RecordSchema(
    name="pull request",
    connection_path=("repository", "pullRequests"),
    fields={
        "number": required("number", convert=_as_key),
        "title": optional("title", convert=_as_str, default=""),
        "url": optional("url", convert=_as_str, default=""),
        "body": optional("bodyText", convert=_as_str, default=""),
        "created_at": required("createdAt", convert=parse_timestamp),
        "closed_at": optional("closedAt", convert=parse_timestamp),
        "merged": optional("merged", convert=_as_bool, default=False),
        "additions": optional("additions", convert=_as_int, default=0),
        "deletions": optional("deletions", convert=_as_int, default=0),
        "changed_files": optional("changedFiles", convert=_as_int, default=0),
        "reviews": optional("reviews", "totalCount", convert=_as_int, default=0),
        "comments": optional("comments", "totalCount", convert=_as_int, default=0),
        "participants": optional("participants", "totalCount", convert=_as_int, default=0),
    },
)


@dataclass
class NormalizedPage:
    """Records of one page plus its pagination envelope."""

    records: list[dict[str, Any]]
    next_cursor: str | None
    has_more: bool


class ResponseNormalizer:
    """Extract flat records from a GraphQL page according to a schema."""

    def __init__(self, schema: RecordSchema, context: dict[str, Any] | None = None) -> None:
        self.schema = schema
        # Copied into every record, e.g. the owning repository of pull requests
        self.context = dict(context or {})

    def _connection(self, page: dict[str, Any]) -> dict[str, Any]:
        data = page.get("data")
        if not isinstance(data, dict):
            raise GitHubSchemaError("Response has no 'data' object")
        connection = dig(data, self.schema.connection_path)
        if not isinstance(connection, dict):
            location = ".".join(("data",) + self.schema.connection_path)
            raise GitHubSchemaError(f"Response has no '{location}' connection")
        return connection

    def _page_info(self, connection: dict[str, Any]) -> tuple[str | None, bool]:
        page_info = connection.get("pageInfo")
        if not isinstance(page_info, dict) or "hasNextPage" not in page_info:
            raise GitHubSchemaError("Connection has no pageInfo.hasNextPage")
        has_more = page_info["hasNextPage"] is True
        cursor = page_info.get("endCursor")
        if has_more and not isinstance(cursor, str):
            raise GitHubSchemaError("pageInfo.hasNextPage is true but endCursor is missing")
        return (cursor if has_more else None), has_more

    def _read_field(self, node: dict[str, Any], spec: FieldSpec, index: int) -> Any:
        value = dig(node, spec.path, _MISSING)
        converted = spec.convert(value) if value is not _MISSING else None
        if spec.required:
            if value is _MISSING or converted is None or converted == "":
                raise GitHubSchemaError(
                    f"{self.schema.name} node {index} is missing required field "
                    f"'{'.'.join(spec.path)}'"
                )
            return converted
        return spec.default if converted is None else converted

    def normalize_node(self, node: dict[str, Any], index: int = 0) -> dict[str, Any]:
        record = dict(self.context)
        for key, spec in self.schema.fields.items():
            record[key] = self._read_field(node, spec, index)
        return record

    def normalize(self, page: dict[str, Any]) -> NormalizedPage:
        """Return the records of *page* with the next cursor and ``has_more`` flag."""
        connection = self._connection(page)
        next_cursor, has_more = self._page_info(connection)

        nodes = connection.get("nodes")
        if not isinstance(nodes, list):
            raise GitHubSchemaError("Connection has no 'nodes' list")

        records = []
        for index, node in enumerate(nodes):
            # search returns empty objects for hits that are not repositories
            if not node:
                continue
            if not isinstance(node, dict):
                raise GitHubSchemaError(f"{self.schema.name} node {index} is not an object")
            records.append(self.normalize_node(node, index))

        return NormalizedPage(records=records, next_cursor=next_cursor, has_more=has_more)
