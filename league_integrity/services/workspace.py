from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime

from ..models.issue import ValidationReport
from ..models.results import MutationResult, ReferenceStats, WorkspaceStatus
from ..models.row import Row, normalize_value, rows_from_records
from ..models.schema import FILE_ORDER, FILE_SCHEMAS, HIERARCHY_FILE, FileSchema
from .reference_rewriter import rewrite_references
from .renumber import renumber_hierarchy
from .validator import DEFAULT_STAGE_TYPE_KEYS, validate

"""Workspace: the in-memory row store of one competition dataset.

A Workspace owns the rows of all eight files for a single caller. Every
structural mutation of the hierarchy file (insert, delete, reorder, edit)
runs the same pipeline stage afterwards::

    renumber_hierarchy(rows) -> line_map -> rewrite_references(line_map)

and returns its counters in a MutationResult. Mutations are transactional:
an operational error (unknown file, unknown row, malformed reorder, invalid
numeric value) raises and leaves the store exactly as it was.

Lifecycle: load (constructor) -> mutate* -> validate / save (mark_saved).
"""

__all__ = [
    "Workspace",
    "WorkspaceError",
    "UnknownFileError",
    "UnknownRowError",
    "ReorderError",
    "InvalidValueError",
]

logger = logging.getLogger(__name__)


class WorkspaceError(Exception):
    """Base exception for operational (integration) errors."""
    pass


class UnknownFileError(WorkspaceError):
    pass


class UnknownRowError(WorkspaceError):
    pass


class ReorderError(WorkspaceError):
    pass


class InvalidValueError(WorkspaceError):
    pass


class Workspace:
    """Row store for the eight data files.

    Parameters
    ----------
    dataset: File name -> rows. Files missing from the mapping start empty.
        Rows are taken over as-is (identities preserved).
    stage_type_keys: Settings rule names checked by ``validate``
    """

    def __init__(
        self,
        dataset: Mapping[str, Sequence[Row]] | None = None,
        *,
        stage_type_keys: Iterable[str] = DEFAULT_STAGE_TYPE_KEYS,
    ) -> None:
        dataset = dataset or {}
        unknown = [name for name in dataset if name not in FILE_SCHEMAS]
        if unknown:
            raise UnknownFileError(f"Unknown file(s): {sorted(unknown)}")
        self._files: dict[str, list[Row]] = {
            name: list(dataset.get(name, ())) for name in FILE_ORDER
        }
        self.stage_type_keys = tuple(stage_type_keys)
        self.dirty = False
        self.modified_at: datetime | None = None
        self.last_saved: datetime | None = None
        self.last_references = ReferenceStats.empty()
        # 読み込み直後の採番は dirty 扱いにしない
        self.recalculate(mark_dirty=False)

    @classmethod
    def from_records(
        cls,
        records: Mapping[str, Iterable[Mapping[str, object]]],
        **kwargs: object,
    ) -> Workspace:
        """Build a workspace from plain column->value mappings (fresh identities)."""
        dataset: dict[str, list[Row]] = {}
        for name, items in records.items():
            schema = FILE_SCHEMAS.get(name)
            if schema is None:
                raise UnknownFileError(f"Unknown file {name}")
            dataset[name] = rows_from_records(schema, items)
        return cls(dataset, **kwargs)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def rows(self, name: str) -> list[Row]:
        """Current rows of ``name`` (live list; treat as read-only)."""
        return self._ensure_file(name)

    def find_row(self, name: str, identity: str) -> Row:
        for row in self._ensure_file(name):
            if row.identity == identity:
                return row
        raise UnknownRowError(f"Row {identity} not found in {name}.")

    def snapshot(self) -> dict[str, list[Row]]:
        """Deep copy of all rows (identities kept) for validation or export."""
        return {name: [row.copy() for row in rows] for name, rows in self._files.items()}

    def total_rows(self) -> int:
        return sum(len(rows) for rows in self._files.values())

    def status(self) -> WorkspaceStatus:
        return WorkspaceStatus(
            dirty=self.dirty,
            modified_at=self.modified_at,
            last_saved=self.last_saved,
            total_rows=self.total_rows(),
            reference_updates=self.last_references.updated,
        )

    def validate(self) -> ValidationReport:
        return validate(self.snapshot(), stage_type_keys=self.stage_type_keys)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert_row(
        self,
        name: str,
        index: int | None = None,
        values: Mapping[str, object] | None = None,
    ) -> MutationResult:
        """Insert a new row built from the file's defaults and ``values``.

        Args:
            name: Target file
            index: Insert position (0..len); None appends
            values: Column overrides; read-only columns are ignored

        Raises:
            UnknownFileError, InvalidValueError, WorkspaceError (index out of range)
        """
        rows = self._ensure_file(name)
        schema = FILE_SCHEMAS[name]
        if index is not None and not 0 <= index <= len(rows):
            raise WorkspaceError(
                f"Insert index {index} out of range for {name} (0..{len(rows)})."
            )
        new_row = Row(values=self._materialise(schema, values or {}))
        with self._transaction():
            if index is None:
                rows.append(new_row)
            else:
                rows.insert(index, new_row)
            references = self._after_change(name)
        logger.debug("insert file=%s index=%s identity=%s", name, index, new_row.identity)
        return MutationResult(file=name, affected=1, row=new_row, references=references)

    def delete_rows(self, name: str, identities: Iterable[str]) -> MutationResult:
        """Remove rows by identity. References to them are not cascaded.

        Raises:
            UnknownFileError, UnknownRowError
        """
        rows = self._ensure_file(name)
        wanted = set(identities)
        present = {row.identity for row in rows}
        missing = wanted - present
        if missing:
            raise UnknownRowError(f"Row(s) {sorted(missing)} not found in {name}.")
        if not wanted:
            return MutationResult(file=name, affected=0)
        with self._transaction():
            rows[:] = [row for row in rows if row.identity not in wanted]
            references = self._after_change(name)
        logger.debug("delete file=%s removed=%d", name, len(wanted))
        return MutationResult(file=name, affected=len(wanted), references=references)

    def update_cell(self, name: str, identity: str, column: str, value: object) -> MutationResult:
        """Edit one cell in place.

        Read-only columns (the hierarchy line id) are left unchanged and the
        result reports ``affected=0``.

        Raises:
            UnknownFileError, UnknownRowError, WorkspaceError (unknown column),
            InvalidValueError (non-integer text for a numeric column, comma or
            line break in a text column)
        """
        self._ensure_file(name)
        schema = FILE_SCHEMAS[name]
        spec = schema.column(column)
        if spec is None:
            raise WorkspaceError(f"Column {column} does not exist for {name}.")
        row = self.find_row(name, identity)
        if spec.read_only:
            return MutationResult(file=name, affected=0, row=row)
        try:
            normalized = normalize_value(value, spec)
        except ValueError as e:
            raise InvalidValueError(str(e)) from e
        with self._transaction():
            row.values[column] = normalized
            references = self._after_change(name)
        return MutationResult(file=name, affected=1, row=row, references=references)

    def reorder(self, name: str, order: Sequence[str]) -> MutationResult:
        """Reorder ``name`` to the given identity sequence.

        Raises:
            UnknownFileError, ReorderError (missing, unknown or repeated identities)
        """
        rows = self._ensure_file(name)
        if len(order) != len(rows) or len(set(order)) != len(order):
            raise ReorderError("Reorder request must include every row identifier exactly once.")
        by_identity = {row.identity: row for row in rows}
        unknown = [identity for identity in order if identity not in by_identity]
        if unknown:
            raise ReorderError(f"Unknown row id(s) {unknown} provided for reorder.")
        with self._transaction():
            rows[:] = [by_identity[identity] for identity in order]
            references = self._after_change(name)
        return MutationResult(file=name, affected=len(rows), references=references)

    def recalculate(self, mark_dirty: bool = True) -> ReferenceStats:
        """Run the renumber -> rewrite stage over the whole dataset."""
        with self._transaction():
            hierarchy = self._files[HIERARCHY_FILE]
            if not hierarchy:
                stats = ReferenceStats.empty()
            else:
                renumbered = renumber_hierarchy(hierarchy)
                logger.debug(
                    "renumber rows=%d shifted=%d", renumbered.row_count, len(renumbered.shifted)
                )
                stats = rewrite_references(
                    renumbered.line_map, self._files, row_count=renumbered.row_count
                )
        self.last_references = stats
        if mark_dirty:
            self._mark_dirty()
        if stats.updated or stats.broken:
            logger.info(
                "references updated=%d broken=%d missing_parents=%d",
                stats.updated,
                stats.broken,
                stats.missing_parents,
            )
        return stats

    def mark_saved(self, when: datetime | None = None) -> None:
        self.dirty = False
        self.last_saved = when or datetime.now(UTC)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _after_change(self, name: str) -> ReferenceStats | None:
        self._mark_dirty()
        if name != HIERARCHY_FILE:
            return None
        return self.recalculate()

    def _ensure_file(self, name: str) -> list[Row]:
        rows = self._files.get(name)
        if rows is None:
            raise UnknownFileError(f"Unknown file {name}")
        return rows

    def _mark_dirty(self) -> None:
        self.dirty = True
        self.modified_at = datetime.now(UTC)

    @staticmethod
    def _materialise(schema: FileSchema, values: Mapping[str, object]) -> dict[str, str]:
        base = schema.default_row()
        for key, value in values.items():
            spec = schema.column(key)
            if spec is None:
                raise WorkspaceError(f"Column {key} does not exist for {schema.name}.")
            if spec.read_only:
                continue
            base[key] = value  # type: ignore[assignment]
        try:
            return {spec.key: normalize_value(base[spec.key], spec) for spec in schema.columns}
        except ValueError as e:
            raise InvalidValueError(str(e)) from e

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Restore row lists and row values if the body raises."""
        saved_lists = {name: list(rows) for name, rows in self._files.items()}
        saved_values = {
            id(row): (row, dict(row.values)) for rows in self._files.values() for row in rows
        }
        saved_state = (self.dirty, self.modified_at, self.last_references)
        try:
            yield
        except Exception:
            for name, rows in saved_lists.items():
                self._files[name][:] = rows
            for row, values in saved_values.values():
                row.values.clear()
                row.values.update(values)
            self.dirty, self.modified_at, self.last_references = saved_state
            logger.debug("workspace mutation rolled back", exc_info=True)
            raise
