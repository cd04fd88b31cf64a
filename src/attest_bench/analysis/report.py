"""CSV benchmark reports: one row per processed group."""

from __future__ import annotations

import csv
import os

from attest_bench.utils.types import BatchRow


def report_header(include_scheme: bool = True) -> list[str]:
    if include_scheme:
        return ["count", "scheme", "avg_cost", "payload_bytes"]
    return ["count", "avg_cost", "payload_bytes"]


def export_csv(rows: list[BatchRow], filepath: str, include_scheme: bool = True) -> str:
    """Write report rows to ``filepath`` and return the path."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filepath, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(report_header(include_scheme))
        for row in rows:
            if include_scheme:
                writer.writerow([row.count, row.scheme, row.avg_cost, row.payload_bytes])
            else:
                writer.writerow([row.count, row.avg_cost, row.payload_bytes])
    return filepath


def read_csv(filepath: str) -> list[BatchRow]:
    """Load a report written by ``export_csv`` (with or without scheme)."""
    rows = []
    with open(filepath, newline="") as f:
        for record in csv.DictReader(f):
            rows.append(
                BatchRow(
                    count=int(record["count"]),
                    scheme=record.get("scheme", ""),
                    avg_cost=int(record["avg_cost"]),
                    payload_bytes=int(record["payload_bytes"]),
                )
            )
    return rows
