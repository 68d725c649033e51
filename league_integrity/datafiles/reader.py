from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from ..models.row import Row
from ..models.schema import FILE_ORDER, FILE_SCHEMAS, FileSchema, get_schema
from ..services.progress import FileProgress

"""Reader for the comma delimited competition data files.

The files have no header line and never escape commas, so a line is split
on every comma. Consecutive commas are empty cells. CRLF line endings are
normalized and blank lines skipped. Rows shorter or longer than the column
contract are kept: the cell count is stored in ``Row.width`` and reported
by the validator, missing cells read as empty and cells past the last
column are kept in ``Row.overflow`` so a save writes them back.
"""

__all__ = [
    "DataFileError",
    "split_line",
    "parse_rows",
    "parse_dataset",
    "read_data_file",
    "read_dataset",
]

ENCODING = "utf-8"


class DataFileError(Exception):
    """Raised when a data file cannot be read or decoded."""


def split_line(line: str) -> list[str]:
    """Split one line into cells, trailing CR removed."""
    if line.endswith("\r"):
        line = line[:-1]
    return line.split(",")


def parse_rows(content: str, schema: FileSchema) -> list[Row]:
    """Parse file content into rows with fresh identities.

    Parameters
    ----------
    content: Raw file text
    schema: Column contract of the file

    Returns
    -------
    list[Row]: one row per non-blank line, ``width`` = cell count
    """
    text = (content or "").replace("\r\n", "\n")
    rows: list[Row] = []
    keys = schema.column_keys
    for line in text.split("\n"):
        if not line.strip():
            continue
        cells = split_line(line)
        values = {key: (cells[i] if i < len(cells) else "") for i, key in enumerate(keys)}
        rows.append(Row(values=values, width=len(cells), overflow=tuple(cells[len(keys):])))
    return rows


def parse_dataset(contents: Mapping[str, str]) -> dict[str, list[Row]]:
    """Parse in-memory file contents keyed by file name.

    Names are matched case-insensitively; unknown names are ignored and
    files that are not present parse as empty.
    """
    dataset: dict[str, list[Row]] = {name: [] for name in FILE_ORDER}
    for name, text in contents.items():
        schema = get_schema(name)
        if schema is not None:
            dataset[schema.name] = parse_rows(text, schema)
    return dataset


def read_data_file(path: Path, schema: FileSchema) -> list[Row]:
    """Read one data file. A missing file reads as empty.

    Raises:
        DataFileError: file exists but cannot be read or decoded
    """
    if not path.exists():
        return []
    try:
        content = path.read_text(encoding=ENCODING)
    except (OSError, UnicodeDecodeError) as e:
        raise DataFileError(f"cannot read {path}: {e}") from e
    return parse_rows(content, schema)


def read_dataset(directory: Path, names: Iterable[str] | None = None) -> dict[str, list[Row]]:
    """Read every data file from ``directory``.

    Args:
        directory: Folder holding the eight files
        names: Restrict to these files (None = all)

    Raises:
        DataFileError: directory missing or a file unreadable
    """
    if not directory.is_dir():
        raise DataFileError(f"data directory not found: {directory}")
    targets = [name for name in FILE_ORDER if names is None or name in set(names)]
    dataset: dict[str, list[Row]] = {}
    progress = FileProgress(targets, description="Loading files")
    for name in progress:
        dataset[name] = read_data_file(directory / name, FILE_SCHEMAS[name])
        progress.note(rows=len(dataset[name]))
    return dataset
