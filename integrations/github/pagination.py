"""Cursor-following driver that turns GraphQL pages into derived records."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from models import Colors

from .fetcher import ResilientFetcher
from .github import GraphQLAPI
from .models import (
    ApplicationError,
    FetchConfig,
    GitHubAPIError,
    GitHubSchemaError,
    Success,
)
from .normalizer import RecordSchema, ResponseNormalizer
from .queries import SearchFilters


class QueryBuilder(Protocol):
    def build(self, cursor: str | None, page_size: int, filters: SearchFilters) -> str: ...


class RecordDeriver(Protocol):
    def derive(self, raw: dict[str, Any]) -> Any | None: ...


class DriverState(Enum):
    """Lifecycle of one pagination run."""

    START = "start"
    FETCHING = "fetching"
    ACCUMULATING = "accumulating"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class ResultCollection:
    """Derived records of one run, in arrival order, plus how the run ended."""

    label: str = ""
    records: list[Any] = field(default_factory=list)
    state: DriverState = DriverState.START
    pages_fetched: int = 0
    cancelled: bool = False
    error: GitHubAPIError | None = None

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.records)

    def __getitem__(self, index: int) -> Any:
        return self.records[index]

    @property
    def complete(self) -> bool:
        """True when the run ended normally; partial and cancelled runs are not complete."""
        return self.state is DriverState.DONE and not self.cancelled

    def sorted_by(self, metric: str, reverse: bool = True) -> list[Any]:
        """Return the records re-sorted on *metric*, leaving arrival order intact."""
        return sorted(self.records, key=lambda record: getattr(record, metric), reverse=reverse)


class PaginationDriver:
    """Follow a cursor chain through query, fetch, normalize and derive steps.

    The query builder, record schema and deriver are injected, so the same
    loop collects repositories from search and pull requests of a
    repository. One call to :meth:`drive` is one run with its own cursor
    and its own :class:`ResultCollection`; a driver may serve several runs.
    """

    def __init__(
        self,
        transport: GraphQLAPI,
        query_builder: QueryBuilder,
        schema: RecordSchema,
        deriver: RecordDeriver,
        context: dict[str, Any] | None = None,
        label: str = "",
        colors: Any = Colors,
        verbose: bool = False,
    ) -> None:
        self.transport = transport
        self.query_builder = query_builder
        self.schema = schema
        self.deriver = deriver
        self.context = context
        self.label = label or schema.name
        self.colors = colors
        self.verbose = verbose

    def _accumulate(
        self, results: ResultCollection, raw_records: list[dict[str, Any]], record_cap: int
    ) -> int:
        excluded = 0
        for raw in raw_records:
            if len(results.records) >= record_cap:
                break
            record = self.deriver.derive(raw)
            if record is None:
                excluded += 1
                continue
            results.records.append(record)
        return excluded

    def _abort(self, results: ResultCollection, cause: GitHubAPIError) -> ResultCollection:
        results.state = DriverState.ABORTED
        results.error = cause
        print(
            f"{self.colors.ERROR}❌ {self.label}: aborted on page {results.pages_fetched + 1}: "
            f"{cause}{self.colors.RESET}"
        )
        print(
            f"{self.colors.WARNING}ℹ️  Keeping {len(results)} record"
            f"{'s' if len(results) != 1 else ''} collected before the failure.{self.colors.RESET}"
        )
        return results

    def drive(
        self,
        filters: SearchFilters,
        page_size: int,
        record_cap: int,
        fetch_config: FetchConfig | None = None,
        *,
        max_pages: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ResultCollection:
        """Collect up to *record_cap* derived records.

        Fetch and schema failures do not raise: the returned collection is
        marked ``ABORTED``, carries the cause in ``error`` and keeps every
        record gathered before the failing page.
        """
        if record_cap < 1:
            raise ValueError(f"record_cap must be at least 1, got: {record_cap}")

        fetcher = ResilientFetcher(self.transport, fetch_config, colors=self.colors)
        normalizer = ResponseNormalizer(self.schema, self.context)
        results = ResultCollection(label=self.label)
        cursor: str | None = None

        while True:
            if cancel_event is not None and cancel_event.is_set():
                results.cancelled = True
                results.state = DriverState.DONE
                print(
                    f"{self.colors.WARNING}⏹️  {self.label}: cancelled after "
                    f"{results.pages_fetched} page(s), {len(results)} records kept{self.colors.RESET}"
                )
                break

            results.state = DriverState.FETCHING
            query = self.query_builder.build(cursor, page_size, filters)
            if self.verbose:
                print(
                    f"{self.colors.PROGRESS}📄 {self.label}: fetching page "
                    f"{results.pages_fetched + 1}...{self.colors.RESET}"
                )

            outcome = fetcher.fetch(query)
            if isinstance(outcome, ApplicationError):
                return self._abort(results, outcome.cause)
            if not isinstance(outcome, Success):
                return self._abort(results, _as_api_error(outcome.cause))

            try:
                page = normalizer.normalize(outcome.page)
            except GitHubSchemaError as exc:
                return self._abort(results, exc)

            results.state = DriverState.ACCUMULATING
            results.pages_fetched += 1
            excluded = self._accumulate(results, page.records, record_cap)
            print(
                f"{self.colors.PROGRESS}📄 {self.label}: page {results.pages_fetched} loaded "
                f"({len(page.records)} records, {excluded} excluded), "
                f"total {len(results)}{self.colors.RESET}"
            )

            if len(results) >= record_cap or not page.has_more:
                results.state = DriverState.DONE
                break
            if max_pages is not None and results.pages_fetched >= max_pages:
                results.state = DriverState.DONE
                break
            cursor = page.next_cursor

        return results


def _as_api_error(cause: Exception) -> GitHubAPIError:
    if isinstance(cause, GitHubAPIError):
        return cause
    error = GitHubAPIError(str(cause))
    error.__cause__ = cause
    return error
