"""Shared constants, console palette and run configuration for ghmetrics."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from colorama import Fore, Style, init

from integrations.github.models import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_PR_PAGE_SIZE,
    DEFAULT_RECORD_CAP,
    FetchConfig,
)
from integrations.github.queries import SearchFilters
from tools.metrics.deriver import DEFAULT_MIN_PULL_REQUESTS, DEFAULT_MIN_REVIEW_HOURS

# Initialize colorama for cross-platform color support
init(autoreset=True)

# Output and display defaults
DEFAULT_OUTPUT_FILE = "repositorios_populares.csv"
DEFAULT_PR_OUTPUT_FILE = "pull_requests.csv"
MAX_DISPLAY_REPOS = 20
DEFAULT_MAX_WORKERS = 4

# Pull request collection defaults
DEFAULT_PR_TARGETS = 1
DEFAULT_PR_PAGES = 3
DEFAULT_PR_CAP = 500


class Colors:
    """Console color palette."""

    HEADER = Fore.CYAN + Style.BRIGHT
    SUCCESS = Fore.GREEN + Style.BRIGHT
    WARNING = Fore.YELLOW + Style.BRIGHT
    ERROR = Fore.RED + Style.BRIGHT
    INFO = Fore.BLUE + Style.BRIGHT
    PROGRESS = Fore.CYAN
    REPO_NAME = Fore.MAGENTA + Style.BRIGHT
    STARS = Fore.YELLOW + Style.BRIGHT
    METRIC = Fore.GREEN
    URL = Fore.BLUE + Style.DIM
    DESCRIPTION = Fore.WHITE + Style.DIM
    RESET = Style.RESET_ALL


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass
class CollectionConfig:
    """Everything one collection run needs besides the token."""

    filters: SearchFilters = field(default_factory=SearchFilters)
    page_size: int = DEFAULT_PAGE_SIZE
    record_cap: int = DEFAULT_RECORD_CAP
    fetch: FetchConfig = field(default_factory=FetchConfig)
    max_pages: int | None = None

    # Pull request collection
    pr_page_size: int = DEFAULT_PR_PAGE_SIZE
    pr_record_cap: int = DEFAULT_PR_CAP
    pr_max_pages: int | None = DEFAULT_PR_PAGES
    pr_targets: int = DEFAULT_PR_TARGETS
    target_min_pull_requests: int = DEFAULT_MIN_PULL_REQUESTS
    max_workers: int = DEFAULT_MAX_WORKERS

    # Inclusion filters
    min_pull_requests: int = 0
    min_review_hours: float = DEFAULT_MIN_REVIEW_HOURS

    @classmethod
    def from_env(cls) -> CollectionConfig:
        """Create configuration from environment variables."""
        fetch = FetchConfig(
            max_attempts=_env_int("GHMETRICS_MAX_ATTEMPTS", FetchConfig.max_attempts),
            base_backoff_ms=_env_int("GHMETRICS_BACKOFF_MS", FetchConfig.base_backoff_ms),
            request_timeout=_env_float("GHMETRICS_TIMEOUT", FetchConfig.request_timeout),
        )
        return cls(
            page_size=_env_int("GHMETRICS_PAGE_SIZE", DEFAULT_PAGE_SIZE),
            record_cap=_env_int("GHMETRICS_RECORD_CAP", DEFAULT_RECORD_CAP),
            fetch=fetch,
            max_workers=_env_int("GHMETRICS_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        )
