from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..models.issue import JSON_KEYS, ValidationReport

"""Tabular issue report built with pandas.

``issues_frame`` turns a ValidationReport into a DataFrame with one row per
issue (columns file, line, severity, code, message); ``issue_counts``
aggregates it per file and severity for the CLI, and
``write_issue_report`` exports the frame as CSV.
"""

__all__ = [
    "REPORT_COLUMNS",
    "issues_frame",
    "issue_counts",
    "write_issue_report",
]

REPORT_COLUMNS = [k for k in JSON_KEYS if k != "timestamp"]


def issues_frame(report: ValidationReport) -> pd.DataFrame:
    records = [
        {"file": i.file, "line": i.line, "severity": i.severity, "code": i.code, "message": i.message}
        for i in report.issues
    ]
    df = pd.DataFrame.from_records(records, columns=REPORT_COLUMNS)
    return df.astype({"line": "int64"})


def issue_counts(report: ValidationReport) -> pd.DataFrame:
    """Issue counts per file (rows) and severity (columns ``error``/``warning``)."""
    df = issues_frame(report)
    counts = (
        df.groupby(["file", "severity"]).size().unstack(fill_value=0)
        if not df.empty
        else pd.DataFrame()
    )
    return counts.reindex(columns=["error", "warning"], fill_value=0).astype("int64")


def write_issue_report(report: ValidationReport, path: Path) -> Path:
    """Write the issue table as UTF-8 CSV (header row included)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    issues_frame(report).to_csv(path, index=False, encoding="utf-8")
    return path
