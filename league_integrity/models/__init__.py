"""Domain models for the competition data integrity engine.

This package contains the reference schema of the eight data files, the row
models, validation issues and the result types returned by workspace
mutations.
"""

from .issue import SEVERITY_ERROR, SEVERITY_WARNING, Issue, ValidationReport
from .results import AutofixResult, MutationResult, ReferenceStats, RenumberResult, WorkspaceStatus
from .row import HierarchyEntry, Row, hierarchy_entries, parse_int, rows_from_records
from .schema import FILE_ORDER, FILE_SCHEMAS, HIERARCHY_FILE, ColumnSpec, FileSchema, get_schema

__all__ = [
    # Schema
    "ColumnSpec",
    "FileSchema",
    "FILE_SCHEMAS",
    "FILE_ORDER",
    "HIERARCHY_FILE",
    "get_schema",
    # Rows
    "Row",
    "HierarchyEntry",
    "hierarchy_entries",
    "parse_int",
    "rows_from_records",
    # Diagnostics
    "Issue",
    "ValidationReport",
    "SEVERITY_ERROR",
    "SEVERITY_WARNING",
    # Results
    "AutofixResult",
    "MutationResult",
    "ReferenceStats",
    "RenumberResult",
    "WorkspaceStatus",
]
