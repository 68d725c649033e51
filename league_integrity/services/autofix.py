from __future__ import annotations

import logging

from ..models.results import AutofixResult
from ..models.row import parse_int
from ..models.schema import FILE_ORDER, FILE_SCHEMAS, HIERARCHY_FILE
from .workspace import Workspace

"""Automatic fixes for common data-entry problems.

* stage (level 4) names: hyphens become underscores, surrounding blanks trimmed
* whitespace-only cells in any file become empty

All edits go through ``Workspace.update_cell`` so numeric normalization,
renumbering and reference rewriting apply exactly as for manual edits.
"""

__all__ = [
    "apply_autofix",
    "fix_stage_name",
]

logger = logging.getLogger(__name__)

STAGE_LEVEL = 4


def fix_stage_name(name: str) -> str:
    return name.replace("-", "_").strip()


def apply_autofix(workspace: Workspace) -> AutofixResult:
    """Apply every automatic fix to ``workspace`` in place.

    Returns:
        AutofixResult with per-kind counts and the final reference counters
    """
    renamed = 0
    blanked = 0

    for row in list(workspace.rows(HIERARCHY_FILE)):
        if parse_int(row.get("level")) != STAGE_LEVEL:
            continue
        fixed = fix_stage_name(row.get("name"))
        if fixed != row.get("name"):
            workspace.update_cell(HIERARCHY_FILE, row.identity, "name", fixed)
            renamed += 1

    for name in FILE_ORDER:
        schema = FILE_SCHEMAS[name]
        for row in list(workspace.rows(name)):
            for spec in schema.columns:
                value = row.get(spec.key)
                if value and not value.strip() and not spec.read_only:
                    workspace.update_cell(name, row.identity, spec.key, "")
                    blanked += 1

    references = workspace.recalculate(mark_dirty=bool(renamed or blanked))
    if renamed or blanked:
        logger.info("autofix renamed_stages=%d blanked_cells=%d", renamed, blanked)
    return AutofixResult(renamed_stages=renamed, blanked_cells=blanked, references=references)
