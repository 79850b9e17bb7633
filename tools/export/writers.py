"""CSV and JSON writers for derived records."""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from tools.metrics.records import field_names

CSV_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _csv_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.strftime(CSV_DATETIME_FORMAT)
    if isinstance(value, float):
        return f"{value:.4f}"
    if value is None:
        return ""
    return value


def write_csv(records: Iterable[Any], path: str | Path, record_type: type | None = None) -> int:
    """Write *records* to *path* with one column per record field.

    The header comes from *record_type*, or from the first record when it
    is not given. Returns the number of rows written.
    """
    rows = list(records)
    if record_type is None:
        if not rows:
            raise ValueError("record_type is required when there are no records")
        record_type = type(rows[0])
    columns = field_names(record_type)

    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(columns)
        for record in rows:
            writer.writerow([_csv_value(getattr(record, column)) for column in columns])
    return len(rows)


def write_json(
    records: Iterable[Any], path: str | Path, metadata: dict[str, Any] | None = None
) -> int:
    """Write *records* as a JSON document with optional run *metadata*."""
    rows = [record.to_dict() for record in records]
    document: dict[str, Any] = {"count": len(rows), "records": rows}
    if metadata:
        document["metadata"] = metadata

    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as handle:
        json.dump(document, handle, indent=2, ensure_ascii=False)
    return len(rows)
