from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..models.results import ReferenceStats
from ..models.row import Row, parse_int
from ..models.schema import FILE_ORDER, FILE_SCHEMAS, HIERARCHY_FILE, FileSchema

"""Reference rewriter: propagate renumbered line ids into foreign keys.

Every column listed in a file schema's ``references`` holds a hierarchy
line id. After renumbering, each such value is looked up in the old -> new
map and replaced. Values that neither map nor point at a current position
are counted as broken and left untouched so the user can see and fix them.
"""

__all__ = [
    "ReferenceField",
    "ReferenceRewriteError",
    "reference_fields",
    "rewrite_references",
]

logger = logging.getLogger(__name__)

PARENT_COLUMN = "parent_id"


class ReferenceRewriteError(Exception):
    """Raised when the rewriter is given a file it has no schema for."""
    pass


@dataclass(frozen=True)
class ReferenceField:
    """One foreign-key column of one file."""
    file_name: str
    column: str

    @property
    def is_parent(self) -> bool:
        return self.file_name == HIERARCHY_FILE and self.column == PARENT_COLUMN


def reference_fields(schema: FileSchema) -> list[ReferenceField]:
    return [ReferenceField(file_name=schema.name, column=col) for col in schema.references]


def _rewrite_order(files: Mapping[str, Sequence[Row]]) -> list[str]:
    # 階層ファイルを先頭に、以降は FILE_ORDER 順
    names = [name for name in FILE_ORDER if name in files]
    unknown = [name for name in files if name not in FILE_SCHEMAS]
    if unknown:
        raise ReferenceRewriteError(f"No reference schema for files: {sorted(unknown)}")
    return names


def rewrite_references(
    line_map: Mapping[int, int],
    files: Mapping[str, Sequence[Row]],
    row_count: int,
) -> ReferenceStats:
    """Apply an old -> new line id map to every foreign-key column.

    Parameters
    ----------
    line_map: Map produced by renumbering (old line id -> new line id)
    files: File name -> rows, hierarchy file included (mutated in place)
    row_count: Hierarchy row count after renumbering; valid ids are 1..row_count

    Returns
    -------
    ReferenceStats: updated / broken / missing parent counters and the map

    Raises
    ------
    ReferenceRewriteError: If ``files`` contains a name without a schema
    """
    order = _rewrite_order(files)
    updated = 0
    broken = 0
    missing_parents = 0

    for name in order:
        schema = FILE_SCHEMAS[name]
        fields = reference_fields(schema)
        if not fields:
            continue
        for row in files[name]:
            for ref in fields:
                current = parse_int(row.get(ref.column))
                if current is None or current <= 0:
                    continue
                if current in line_map:
                    mapped = line_map[current]
                    if mapped != current:
                        row.values[ref.column] = str(mapped)
                        updated += 1
                    continue
                if 1 <= current <= row_count:
                    continue
                broken += 1
                if ref.is_parent:
                    missing_parents += 1
                logger.debug(
                    "broken reference file=%s column=%s value=%d", name, ref.column, current
                )

    if broken:
        logger.warning(
            "reference rewrite left %d broken reference(s) (missing parents=%d)",
            broken,
            missing_parents,
        )
    return ReferenceStats(
        updated=updated,
        broken=broken,
        missing_parents=missing_parents,
        line_map=dict(line_map),
    )
