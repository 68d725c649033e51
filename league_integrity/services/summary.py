from __future__ import annotations

from ..models.issue import ValidationReport
from ..models.results import ReferenceStats

"""SUMMARY line rendering.

Format::

    SUMMARY files={files} rows={rows} errors={errors} warnings={warnings}
    references_updated={updated} broken={broken} missing_parents={missing}

All values are non-negative integers. The CLI logs the part after the
``SUMMARY `` prefix at SUMMARY level (the formatter re-adds the label).
"""

__all__ = [
    "render_summary_line",
]


def render_summary_line(
    files: int,
    rows: int,
    report: ValidationReport | None = None,
    references: ReferenceStats | None = None,
) -> str:
    """Render one SUMMARY line.

    Args:
        files: Number of data files handled
        rows: Total row count over all files
        report: Validation result (counts are 0 when omitted)
        references: Counters of the last reference rewrite (0 when omitted)

    Examples:
        >>> render_summary_line(8, 12)
        'SUMMARY files=8 rows=12 errors=0 warnings=0 references_updated=0 broken=0 missing_parents=0'
    """
    errors = len(report.errors) if report is not None else 0
    warnings = len(report.warnings) if report is not None else 0
    refs = references or ReferenceStats.empty()
    return (
        f"SUMMARY files={files} "
        f"rows={rows} "
        f"errors={errors} "
        f"warnings={warnings} "
        f"references_updated={refs.updated} "
        f"broken={refs.broken} "
        f"missing_parents={refs.missing_parents}"
    )
