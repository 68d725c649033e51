from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .schema import ColumnSpec, FileSchema

"""Row models for the competition data files.

A Row is one record of one file. ``identity`` is an opaque key used only for
lookup by editing clients; it is never written to disk. The hierarchy file's
line id lives in the ``id`` column and is rewritten by renumbering.
"""

__all__ = [
    "Row",
    "HierarchyEntry",
    "new_identity",
    "has_delimiter",
    "parse_int",
    "normalize_value",
    "rows_from_records",
    "hierarchy_entries",
]

# カンマ区切り・エスケープ無しのため 1 セルに入れられない文字
DELIMITERS = (",", "\n", "\r")


def new_identity() -> str:
    return uuid.uuid4().hex


def parse_int(value: object) -> int | None:
    """Parse an integer cell. Empty or non-integer text yields None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def has_delimiter(text: str) -> bool:
    """True when ``text`` cannot be stored in one cell (comma or line break)."""
    return any(ch in text for ch in DELIMITERS)


def normalize_value(value: object, column: ColumnSpec) -> str:
    """Normalize an incoming cell value for ``column``.

    Numeric columns accept integer text only; empty stays empty (never 0).
    Text columns reject commas and line breaks, which the file format cannot
    represent.

    Raises:
        ValueError: non-integer value for a numeric column, or a delimiter
            inside a text value
    """
    raw = "" if value is None else str(value)
    if not column.numeric:
        if has_delimiter(raw):
            raise ValueError(
                f"Value for {column.key} must not contain a comma or line break: {raw!r}"
            )
        return raw
    if not raw.strip():
        return ""
    parsed = parse_int(raw)
    if parsed is None:
        raise ValueError(f"Value for {column.key} must be an integer: {raw!r}")
    return str(parsed)


@dataclass(eq=False)
class Row:
    """One record of a data file.

    Attributes:
        values: Column key -> cell text
        identity: Opaque lookup key (fresh per load / insert)
        width: Cell count seen when parsed from text, None for rows built in memory
        overflow: Cells past the last schema column, kept verbatim
    """
    values: dict[str, str]
    identity: str = field(default_factory=new_identity)
    width: int | None = None
    overflow: tuple[str, ...] = ()

    def get(self, key: str) -> str:
        return self.values.get(key) or ""

    def copy(self) -> Row:
        """Copy keeping the identity (snapshot use)."""
        return Row(
            values=dict(self.values),
            identity=self.identity,
            width=self.width,
            overflow=self.overflow,
        )

    def cells(self, schema: FileSchema) -> list[str]:
        return [self.get(key) for key in schema.column_keys]

    def stored_cells(self, schema: FileSchema) -> list[str]:
        """Cells as written back to text.

        A row parsed with a wrong cell count keeps that count, overflow
        included. Cells past ``width`` are written once they hold a value.
        """
        cells = self.cells(schema) + list(self.overflow)
        if self.width is None:
            return cells
        used = max((i + 1 for i, cell in enumerate(cells) if cell), default=0)
        return cells[:max(self.width, used)]


def rows_from_records(schema: FileSchema, records: Iterable[Mapping[str, object]]) -> list[Row]:
    """Build rows with fresh identities from plain column->value mappings."""
    rows: list[Row] = []
    for record in records:
        values = {
            key: ("" if record.get(key) is None else str(record.get(key)))
            for key in schema.column_keys
        }
        rows.append(Row(values=values))
    return rows


@dataclass(frozen=True)
class HierarchyEntry:
    """Typed view of one hierarchy row.

    ``position`` is the 1-based file index; ``id`` is the stored line id as
    parsed (None when missing or not an integer). ``parent_id`` is 0 when the
    parent cell is empty and None when it is present but not an integer.
    """
    position: int
    id: int | None
    level: int | None
    code: str
    name: str
    parent_id: int | None
    parent_raw: str

    @property
    def has_parent(self) -> bool:
        return self.parent_id is not None and self.parent_id > 0


def hierarchy_entries(rows: Iterable[Row]) -> list[HierarchyEntry]:
    entries: list[HierarchyEntry] = []
    for index, row in enumerate(rows):
        parent_raw = row.get("parent_id").strip()
        entries.append(
            HierarchyEntry(
                position=index + 1,
                id=parse_int(row.get("id")),
                level=parse_int(row.get("level")),
                code=row.get("code"),
                name=row.get("name"),
                parent_id=parse_int(parent_raw) if parent_raw else 0,
                parent_raw=parent_raw,
            )
        )
    return entries
