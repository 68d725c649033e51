from __future__ import annotations

import logging
import shutil
import zipfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from ..models.row import Row, has_delimiter
from ..models.schema import FILE_ORDER, FILE_SCHEMAS, FileSchema
from ..services.progress import FileProgress
from .reader import ENCODING, DataFileError

"""Writer for the comma delimited competition data files.

Serialization is the inverse of ``reader.parse_rows``: cells are joined with
commas in schema column order, one row per line, with a trailing newline
when the file is not empty. A row read with a wrong cell count is written
with that count again, overflow cells included, so the validator reports
the same column count issue after a save. Cells containing a comma or a line break cannot
be represented (the format has no escaping) and are rejected.

Before a file is overwritten, the previous version is copied to
``<name>_backup.txt`` next to it.
"""

__all__ = [
    "SavedFile",
    "join_line",
    "serialize_rows",
    "serialize_dataset",
    "backup_path",
    "write_dataset",
    "write_archive",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SavedFile:
    name: str
    path: Path
    bytes: int
    backup: Path | None = None


def join_line(cells: Sequence[str]) -> str:
    return ",".join("" if c is None else str(c) for c in cells)


def serialize_rows(rows: Sequence[Row], schema: FileSchema) -> str:
    """Serialize rows of one file (no trailing newline).

    Raises:
        DataFileError: a cell contains a comma or a line break
    """
    lines: list[str] = []
    for line_no, row in enumerate(rows, start=1):
        cells = row.stored_cells(schema)
        keys = schema.column_keys + [f"extra{i}" for i in range(len(row.overflow))]
        for key, cell in zip(keys, cells):
            if has_delimiter(cell):
                raise DataFileError(
                    f"{schema.name} line {line_no}: column {key} contains a delimiter: {cell!r}"
                )
        lines.append(join_line(cells))
    return "\n".join(lines)


def serialize_dataset(dataset: Mapping[str, Sequence[Row]]) -> dict[str, str]:
    """Serialize every known file; missing files serialize as empty text."""
    return {
        name: serialize_rows(dataset.get(name, ()), FILE_SCHEMAS[name]) for name in FILE_ORDER
    }


def backup_path(path: Path) -> Path:
    return path.with_name(f"{path.stem}_backup{path.suffix}")


def write_dataset(
    directory: Path,
    dataset: Mapping[str, Sequence[Row]],
    backup: bool = True,
) -> list[SavedFile]:
    """Write all eight files into ``directory``.

    Parameters
    ----------
    directory: Target folder (created if missing)
    dataset: File name -> rows
    backup: Copy an existing file to ``<name>_backup.txt`` before overwriting

    Returns
    -------
    list[SavedFile]: one entry per written file, in file order

    Raises
    ------
    DataFileError: serialization failure or I/O error
    """
    # 先に全ファイルをシリアライズし、途中失敗で一部だけ書かれる状態を避ける
    contents = serialize_dataset(dataset)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DataFileError(f"cannot create {directory}: {e}") from e

    saved: list[SavedFile] = []
    progress = FileProgress(list(contents), description="Saving files")
    for name in progress:
        content = contents[name]
        path = directory / name
        copied: Path | None = None
        try:
            if backup and path.exists():
                copied = backup_path(path)
                shutil.copyfile(path, copied)
            payload = f"{content}\n" if content else ""
            path.write_text(payload, encoding=ENCODING)
        except OSError as e:
            raise DataFileError(f"Failed to save {name}: {e}") from e
        saved.append(
            SavedFile(name=name, path=path, bytes=len(content.encode(ENCODING)), backup=copied)
        )
        progress.note(bytes=saved[-1].bytes)
    logger.debug("saved %d file(s) to %s", len(saved), directory)
    return saved


def write_archive(path: Path, dataset: Mapping[str, Sequence[Row]]) -> Path:
    """Package the eight files into a zip archive (DEFLATE).

    Raises:
        DataFileError: serialization failure or I/O error
    """
    contents = serialize_dataset(dataset)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, content in contents.items():
                zf.writestr(name, f"{content}\n" if content else "")
    except OSError as e:
        raise DataFileError(f"cannot write archive {path}: {e}") from e
    return path
