#!/usr/bin/env python3
"""Command line entry point for ghmetrics."""

from __future__ import annotations

import argparse
import os
import signal
import sys
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any

from integrations.github.collect import collect_pull_request_study, collect_repositories
from integrations.github.github import GraphQLAPI
from integrations.github.models import (
    DEFAULT_PR_STATES,
    MAX_PAGE_SIZE,
    PULL_REQUEST_STATES,
    FetchConfig,
    GitHubAPIError,
)
from integrations.github.pagination import ResultCollection
from integrations.github.queries import SearchFilters
from models import (
    DEFAULT_OUTPUT_FILE,
    DEFAULT_PR_OUTPUT_FILE,
    MAX_DISPLAY_REPOS,
    CollectionConfig,
    Colors,
)
from tools.export import write_csv, write_json
from tools.metrics.records import PullRequestRecord, RepositoryRecord

REPOSITORY_SORT_KEYS = ("stars", "engagement_score", "issue_ratio", "forks", "commits")
PULL_REQUEST_SORT_KEYS = ("review_time_hours", "body_length", "additions", "reviews", "comments")


class Display:
    """Console rendering helpers."""

    @staticmethod
    def print_banner() -> None:
        banner = f"""
{Colors.HEADER}╔══════════════════════════════════════════════════════════════╗
║                         📊 GHMETRICS                         ║
║          Repository & Pull Request Metrics for GitHub        ║
╚══════════════════════════════════════════════════════════════╝{Colors.RESET}
"""
        print(banner)

    @staticmethod
    def print_run_info(command: str, config: CollectionConfig) -> None:
        filters = config.filters
        print(f"{Colors.INFO}🔍 Collection Parameters:{Colors.RESET}")
        print(f"   {Colors.INFO}•{Colors.RESET} Mode: {Colors.WARNING}{command}{Colors.RESET}")
        print(f"   {Colors.INFO}•{Colors.RESET} Stars: {Colors.WARNING}>{filters.min_stars}{Colors.RESET}")
        if filters.language:
            print(f"   {Colors.INFO}•{Colors.RESET} Language: {Colors.SUCCESS}{filters.language}{Colors.RESET}")
        if command == "pulls":
            print(
                f"   {Colors.INFO}•{Colors.RESET} States: "
                f"{Colors.SUCCESS}{', '.join(filters.states)}{Colors.RESET}"
            )
            print(
                f"   {Colors.INFO}•{Colors.RESET} Repositories: {Colors.WARNING}{config.pr_targets}"
                f"{Colors.RESET} with ≥{config.target_min_pull_requests} PRs"
            )
        else:
            print(f"   {Colors.INFO}•{Colors.RESET} Max Records: {Colors.WARNING}{config.record_cap}{Colors.RESET}")
        print(
            f"   {Colors.INFO}•{Colors.RESET} Retries: {Colors.WARNING}{config.fetch.max_attempts}"
            f"{Colors.RESET} attempts, {config.fetch.base_backoff_ms} ms backoff"
        )
        print()

    @staticmethod
    def format_star_count(stars: Any) -> str:
        if stars == "N/A":
            return f"{Colors.WARNING}N/A{Colors.RESET}"
        if stars >= 10000:
            return f"{Colors.SUCCESS}⭐ {stars:,}{Colors.RESET}"
        if stars >= 1000:
            return f"{Colors.STARS}⭐ {stars:,}{Colors.RESET}"
        return f"{Colors.WARNING}⭐ {stars}{Colors.RESET}"

    @staticmethod
    def format_timestamp(value: datetime | None) -> str:
        if value is None:
            return ""
        return value.strftime("%Y-%m-%d")

    @staticmethod
    def print_repository(index: int, repo: RepositoryRecord) -> None:
        print(f"{Colors.HEADER}{'─' * 80}{Colors.RESET}")
        print(
            f"{Colors.INFO}{index:2d}.{Colors.RESET} {Colors.REPO_NAME}{repo.full_name}{Colors.RESET} "
            f"{Display.format_star_count(repo.stars)}"
        )
        if repo.description:
            desc = repo.description
            if len(desc) > 100:
                desc = desc[:97] + "..."
            print(f"    {Colors.DESCRIPTION}📝 {desc}{Colors.RESET}")
        language = repo.primary_language or "unknown"
        print(
            f"    {Colors.METRIC}📈 engagement {repo.engagement_score:,} · "
            f"issues closed {repo.issue_ratio:.0%} · {language}{Colors.RESET}"
        )
        if repo.url:
            print(f"    {Colors.URL}🔗 {repo.url}{Colors.RESET}")
        print()

    @staticmethod
    def print_results(repositories: Sequence[RepositoryRecord], sort_key: str) -> None:
        if not repositories:
            print(f"{Colors.WARNING}📭 No repositories found matching your criteria.{Colors.RESET}")
            return
        label = sort_key.replace("_", " ").upper()
        print(f"{Colors.SUCCESS}🎯 TOP REPOSITORIES BY {label}:{Colors.RESET}")
        for index, repo in enumerate(repositories[:MAX_DISPLAY_REPOS], 1):
            Display.print_repository(index, repo)

    @staticmethod
    def print_pull_request_summary(collection: ResultCollection) -> None:
        records: list[PullRequestRecord] = collection.records
        if not records:
            print(f"{Colors.WARNING}📭 {collection.label}: no pull requests kept.{Colors.RESET}")
            return
        hours = sorted(record.review_time_hours for record in records)
        median = hours[len(hours) // 2]
        merged = sum(1 for record in records if record.merged)
        print(
            f"{Colors.REPO_NAME}{collection.label}{Colors.RESET}: {len(records)} pull requests, "
            f"{merged} merged, median review {median:.1f}h"
        )

    @staticmethod
    def print_run_status(collection: ResultCollection) -> None:
        if collection.error is not None:
            print(
                f"{Colors.ERROR}⚠️  {collection.label}: incomplete after {collection.pages_fetched} "
                f"page(s), {len(collection)} records kept ({collection.error}){Colors.RESET}"
            )
        elif collection.cancelled:
            print(
                f"{Colors.WARNING}⏹️  {collection.label}: stopped early, "
                f"{len(collection)} records kept{Colors.RESET}"
            )


def parse_states(value: str) -> tuple[str, ...]:
    """Parse a comma-separated list of pull request states."""
    states = tuple(part.strip().upper() for part in value.split(",") if part.strip())
    unknown = [state for state in states if state not in PULL_REQUEST_STATES]
    if unknown:
        raise argparse.ArgumentTypeError(f"unknown state(s): {', '.join(unknown)}")
    if not states:
        raise argparse.ArgumentTypeError("at least one state is required")
    return states


def _page_size(value: str) -> int:
    size = int(value)
    if size < 1 or size > MAX_PAGE_SIZE:
        raise argparse.ArgumentTypeError(f"must be between 1 and {MAX_PAGE_SIZE}")
    return size


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    # Repository filters
    parser.add_argument(
        "--min-stars",
        type=int,
        default=100,
        help="Only repositories with more stars than this (default: 100)",
    )
    parser.add_argument(
        "--language", "-l",
        default="",
        help="Primary language of the repositories (e.g., python)",
    )
    # GitHub API authentication
    parser.add_argument(
        "--github-token",
        help="GitHub personal access token (also can be set via GITHUB_TOKEN env variable)",
    )
    # Output options
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output file path",
    )
    parser.add_argument(
        "--format", "-f",
        choices=("csv", "json"),
        default="csv",
        help="Output format (default: csv)",
    )
    # Retry policy
    parser.add_argument(
        "--max-attempts",
        type=_positive_int,
        default=None,
        help="Attempts per page on transient failures (default: 3)",
    )
    parser.add_argument(
        "--backoff-ms",
        type=int,
        default=None,
        help="Base backoff in milliseconds, multiplied by the attempt number (default: 2000)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Timeout in seconds for each request attempt (default: 30)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghmetrics",
        description="Collect repository and pull request metrics from the GitHub GraphQL API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

    # Top 1000 repositories by stars
    ghmetrics repos --min-stars 0 --max 1000

    # Python repositories ranked by engagement, as JSON
    ghmetrics repos --language python --sort-by engagement_score --format json

    # Pull requests of the first 5 repositories with at least 100 PRs
    ghmetrics pulls --repos 5 --workers 3
""",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    repos = subparsers.add_parser("repos", help="Collect popular repositories")
    _add_common_arguments(repos)
    repos.add_argument(
        "--max",
        type=_positive_int,
        default=None,
        help="Maximum repositories to collect (default: 1000)",
    )
    repos.add_argument(
        "--page-size",
        type=_page_size,
        default=None,
        help=f"Repositories per page, at most {MAX_PAGE_SIZE} (default: 10)",
    )
    repos.add_argument(
        "--pages",
        type=_positive_int,
        default=None,
        help="Stop after this many pages",
    )
    repos.add_argument(
        "--min-prs",
        type=int,
        default=0,
        help="Skip repositories with fewer pull requests (default: 0)",
    )
    repos.add_argument(
        "--sort-by",
        choices=REPOSITORY_SORT_KEYS,
        default="stars",
        help="Metric used to rank the output (default: stars)",
    )

    pulls = subparsers.add_parser(
        "pulls", help="Collect closed pull requests of popular repositories"
    )
    _add_common_arguments(pulls)
    pulls.add_argument(
        "--repos",
        type=_positive_int,
        default=None,
        help="Number of repositories to study (default: 1)",
    )
    pulls.add_argument(
        "--min-prs",
        type=int,
        default=None,
        help="Minimum pull requests for a repository to qualify (default: 100)",
    )
    pulls.add_argument(
        "--states",
        type=parse_states,
        default=DEFAULT_PR_STATES,
        help="Comma-separated pull request states (default: MERGED,CLOSED)",
    )
    pulls.add_argument(
        "--pr-pages",
        type=_positive_int,
        default=None,
        help="Pull request pages per repository (default: 3)",
    )
    pulls.add_argument(
        "--page-size",
        type=_page_size,
        default=None,
        help=f"Pull requests per page, at most {MAX_PAGE_SIZE} (default: 50)",
    )
    pulls.add_argument(
        "--max-prs",
        type=_positive_int,
        default=None,
        help="Maximum pull requests per repository (default: 500)",
    )
    pulls.add_argument(
        "--min-review-hours",
        type=float,
        default=None,
        help="Drop pull requests closed faster than this (default: 1.0)",
    )
    pulls.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Repositories collected in parallel (default: 4)",
    )
    pulls.add_argument(
        "--sort-by",
        choices=PULL_REQUEST_SORT_KEYS,
        default=None,
        help="Metric used to order each repository's pull requests",
    )

    return parser


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


def build_configs_from_args(
    args: argparse.Namespace,
) -> tuple[CollectionConfig, str | None, str | None, str]:
    """Build the run configuration from parsed arguments and the environment.

    Returns the configuration, the token, the sort key and the output path.
    """
    base = CollectionConfig.from_env()
    fetch = FetchConfig(
        max_attempts=_pick(args.max_attempts, base.fetch.max_attempts),
        base_backoff_ms=_pick(args.backoff_ms, base.fetch.base_backoff_ms),
        request_timeout=_pick(args.timeout, base.fetch.request_timeout),
    )
    token = args.github_token or os.getenv("GITHUB_TOKEN")

    if args.command == "repos":
        config = replace(
            base,
            filters=SearchFilters(min_stars=args.min_stars, language=args.language),
            page_size=_pick(args.page_size, base.page_size),
            record_cap=_pick(args.max, base.record_cap),
            max_pages=args.pages,
            fetch=fetch,
            min_pull_requests=args.min_prs,
        )
        output = args.output or DEFAULT_OUTPUT_FILE
    else:
        config = replace(
            base,
            filters=SearchFilters(
                min_stars=args.min_stars, language=args.language, states=args.states
            ),
            fetch=fetch,
            pr_targets=_pick(args.repos, base.pr_targets),
            target_min_pull_requests=_pick(args.min_prs, base.target_min_pull_requests),
            pr_max_pages=_pick(args.pr_pages, base.pr_max_pages),
            pr_page_size=_pick(args.page_size, base.pr_page_size),
            pr_record_cap=_pick(args.max_prs, base.pr_record_cap),
            min_review_hours=_pick(args.min_review_hours, base.min_review_hours),
            max_workers=_pick(args.workers, base.max_workers),
        )
        output = args.output or DEFAULT_PR_OUTPUT_FILE

    if args.format == "json" and args.output is None:
        output = os.path.splitext(output)[0] + ".json"
    return config, token, args.sort_by, output


@contextmanager
def cancel_on_interrupt() -> Iterator[threading.Event]:
    """Turn Ctrl-C into a graceful stop of running collections."""
    cancel_event = threading.Event()

    def _handler(signum: int, frame: Any) -> None:
        print(f"\n{Colors.WARNING}⏹️  Interrupted, finishing the current page...{Colors.RESET}")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, previous)


def _export(
    records: Sequence[Any], output: str, fmt: str, record_type: type, metadata: dict[str, Any]
) -> None:
    if fmt == "json":
        count = write_json(records, output, metadata=metadata)
    else:
        count = write_csv(records, output, record_type=record_type)
    print(f"{Colors.SUCCESS}💾 Saved {count} records to {output}{Colors.RESET}")


def run_repositories(
    config: CollectionConfig,
    transport: GraphQLAPI,
    args: argparse.Namespace,
    sort_key: str,
    output: str,
) -> int:
    with cancel_on_interrupt() as cancel_event:
        collection = collect_repositories(
            config, transport, cancel_event=cancel_event, verbose=args.verbose
        )

    ranked = collection.sorted_by(sort_key)
    Display.print_results(ranked, sort_key)
    Display.print_run_status(collection)
    _export(
        ranked,
        output,
        args.format,
        RepositoryRecord,
        {"complete": collection.complete, "pages": collection.pages_fetched, "sort_by": sort_key},
    )
    return 0 if collection.error is None else 1


def run_pull_requests(
    config: CollectionConfig,
    transport: GraphQLAPI,
    args: argparse.Namespace,
    sort_key: str | None,
    output: str,
) -> int:
    with cancel_on_interrupt() as cancel_event:
        repositories, runs = collect_pull_request_study(
            config, transport, cancel_event=cancel_event, verbose=args.verbose
        )

    Display.print_run_status(repositories)
    records: list[PullRequestRecord] = []
    for run in runs:
        Display.print_pull_request_summary(run)
        Display.print_run_status(run)
        records.extend(run.sorted_by(sort_key) if sort_key else run.records)

    _export(
        records,
        output,
        args.format,
        PullRequestRecord,
        {
            "repositories": [run.label for run in runs],
            "complete": all(run.complete for run in runs) and repositories.complete,
        },
    )
    failed = repositories.error is not None or any(run.error is not None for run in runs)
    return 1 if failed else 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        config, token, sort_key, output = build_configs_from_args(args)
    except ValueError as exc:
        print(f"{Colors.ERROR}❌ Error: {exc}{Colors.RESET}")
        return 1

    if not token:
        print(
            f"{Colors.ERROR}❌ Error: GITHUB_TOKEN environment variable or --github-token "
            f"argument must be set.{Colors.RESET}"
        )
        return 1

    Display.print_banner()
    Display.print_run_info(args.command, config)

    try:
        transport = GraphQLAPI(token=token)
        if args.command == "repos":
            return run_repositories(config, transport, args, sort_key, output)
        return run_pull_requests(config, transport, args, sort_key, output)
    except GitHubAPIError as exc:
        print(f"{Colors.ERROR}❌ Error: {exc}{Colors.RESET}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
