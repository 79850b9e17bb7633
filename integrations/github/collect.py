"""High-level collection runs built on the pagination driver."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any

from models import CollectionConfig, Colors
from tools.metrics.deriver import PullRequestMetricDeriver, RepositoryMetricDeriver
from tools.metrics.records import RepositoryRecord

from .github import GraphQLAPI
from .models import GitHubAPIError
from .normalizer import PULL_REQUEST_SCHEMA, REPOSITORY_SCHEMA
from .pagination import DriverState, PaginationDriver, ResultCollection
from .queries import PullRequestQuery, RepositorySearchQuery


def _split_full_name(target: RepositoryRecord | str) -> tuple[str, str]:
    if isinstance(target, RepositoryRecord):
        owner, name = target.owner, target.name
        if not owner or not name:
            raise ValueError(
                f"Repository record has no owner/repo name: {target.url or target.name}"
            )
        return owner, name
    owner, sep, name = target.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"Invalid repository name format: {target}. Expected: owner/repo")
    return owner, name


def collect_repositories(
    config: CollectionConfig,
    transport: GraphQLAPI,
    *,
    min_pull_requests: int | None = None,
    cancel_event: threading.Event | None = None,
    colors: Any = Colors,
    verbose: bool = False,
) -> ResultCollection:
    """Search repositories matching ``config.filters`` and derive their metrics."""
    threshold = config.min_pull_requests if min_pull_requests is None else min_pull_requests
    driver = PaginationDriver(
        transport,
        RepositorySearchQuery(),
        REPOSITORY_SCHEMA,
        RepositoryMetricDeriver(min_pull_requests=threshold),
        label="repositories",
        colors=colors,
        verbose=verbose,
    )
    print(f"{colors.INFO}🔍 Searching repositories (up to {config.record_cap})...{colors.RESET}")
    results = driver.drive(
        config.filters,
        config.page_size,
        config.record_cap,
        config.fetch,
        max_pages=config.max_pages,
        cancel_event=cancel_event,
    )
    if results.complete:
        print(f"{colors.SUCCESS}✅ Collected {len(results)} repositories{colors.RESET}")
    return results


def _rejected_target(
    target: RepositoryRecord | str, exc: ValueError, colors: Any
) -> ResultCollection:
    label = target.full_name if isinstance(target, RepositoryRecord) else str(target)
    error = GitHubAPIError(f"Cannot collect pull requests of {label or '<unnamed>'}: {exc}")
    error.__cause__ = exc
    print(f"{colors.ERROR}❌ {error}{colors.RESET}")
    return ResultCollection(label=label, state=DriverState.ABORTED, error=error)


def _collect_repository_pull_requests(
    target: RepositoryRecord | str,
    config: CollectionConfig,
    transport: GraphQLAPI,
    cancel_event: threading.Event | None,
    colors: Any,
    verbose: bool,
) -> ResultCollection:
    try:
        owner, name = _split_full_name(target)
    except ValueError as exc:
        return _rejected_target(target, exc, colors)
    full_name = f"{owner}/{name}"
    driver = PaginationDriver(
        transport,
        PullRequestQuery(),
        PULL_REQUEST_SCHEMA,
        PullRequestMetricDeriver(min_review_hours=config.min_review_hours),
        context={"repository": full_name},
        label=full_name,
        colors=colors,
        verbose=verbose,
    )
    return driver.drive(
        replace(config.filters, owner=owner, name=name),
        config.pr_page_size,
        config.pr_record_cap,
        config.fetch,
        max_pages=config.pr_max_pages,
        cancel_event=cancel_event,
    )


def collect_pull_requests(
    targets: Iterable[RepositoryRecord | str],
    config: CollectionConfig,
    transport: GraphQLAPI,
    *,
    cancel_event: threading.Event | None = None,
    colors: Any = Colors,
    verbose: bool = False,
) -> list[ResultCollection]:
    """Collect pull requests of every target, one independent run per repository.

    Runs execute on at most ``config.max_workers`` threads and share no
    state; results come back in target order.
    """
    target_list: Sequence[RepositoryRecord | str] = list(targets)
    if not target_list:
        return []

    workers = max(1, min(config.max_workers, len(target_list)))
    print(
        f"{colors.INFO}📊 Collecting pull requests of {len(target_list)} "
        f"repositor{'ies' if len(target_list) != 1 else 'y'} ({workers} worker"
        f"{'s' if workers != 1 else ''})...{colors.RESET}"
    )
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(
                _collect_repository_pull_requests,
                target,
                config,
                transport,
                cancel_event,
                colors,
                verbose,
            )
            for target in target_list
        ]
        return [future.result() for future in futures]


def collect_pull_request_study(
    config: CollectionConfig,
    transport: GraphQLAPI,
    *,
    cancel_event: threading.Event | None = None,
    colors: Any = Colors,
    verbose: bool = False,
) -> tuple[ResultCollection, list[ResultCollection]]:
    """Pick popular repositories, then collect the pull requests of the first few.

    Only repositories with at least ``config.target_min_pull_requests``
    pull requests are eligible; the first ``config.pr_targets`` of them are
    studied.
    """
    selection = replace(config, record_cap=max(config.pr_targets, 1))
    repositories = collect_repositories(
        selection,
        transport,
        min_pull_requests=config.target_min_pull_requests,
        cancel_event=cancel_event,
        colors=colors,
        verbose=verbose,
    )
    if not len(repositories):
        print(f"{colors.WARNING}📭 No repository qualifies for pull request collection.{colors.RESET}")
        return repositories, []

    pull_requests = collect_pull_requests(
        repositories.records[: config.pr_targets],
        config,
        transport,
        cancel_event=cancel_event,
        colors=colors,
        verbose=verbose,
    )
    return repositories, pull_requests
