from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .row import Row

"""Result models for workspace mutations and reference recalculation."""

__all__ = [
    "RenumberResult",
    "ReferenceStats",
    "MutationResult",
    "WorkspaceStatus",
    "AutofixResult",
]


@dataclass(frozen=True)
class RenumberResult:
    """Output of one renumbering pass over the hierarchy file."""
    line_map: dict[int, int]  # 旧 line id -> 新 line id
    row_count: int  # 採番後の行数 (有効 position は 1..row_count)
    changed_ids: int = 0  # id 列が実際に変わった行数

    @property
    def shifted(self) -> dict[int, int]:
        """Only the entries whose position moved."""
        return {old: new for old, new in self.line_map.items() if old != new}


@dataclass(frozen=True)
class ReferenceStats:
    """Counters of one reference rewrite pass (basis of 'N references updated')."""
    updated: int = 0
    broken: int = 0
    missing_parents: int = 0
    line_map: dict[int, int] = field(default_factory=dict)

    @staticmethod
    def empty() -> ReferenceStats:
        return ReferenceStats()


@dataclass(frozen=True)
class MutationResult:
    """Diagnostic summary returned by every workspace mutation.

    ``references`` is only set when the hierarchy file changed and the
    renumber/rewrite stage ran.
    """
    file: str
    affected: int
    row: Row | None = None
    references: ReferenceStats | None = None


@dataclass(frozen=True)
class WorkspaceStatus:
    dirty: bool
    modified_at: datetime | None
    last_saved: datetime | None
    total_rows: int
    reference_updates: int


@dataclass(frozen=True)
class AutofixResult:
    renamed_stages: int = 0  # ハイフン -> アンダースコア
    blanked_cells: int = 0  # 空白のみのセル -> 空文字
    references: ReferenceStats | None = None

    @property
    def total(self) -> int:
        return self.renamed_stages + self.blanked_cells
