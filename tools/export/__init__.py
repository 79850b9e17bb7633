"""Export sinks for collected records."""

from __future__ import annotations

from .writers import write_csv, write_json

__all__ = ["write_csv", "write_json"]
