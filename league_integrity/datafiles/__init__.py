"""Text codec for the eight competition data files (read, write, archive)."""

from .reader import DataFileError, parse_dataset, parse_rows, read_dataset
from .writer import serialize_dataset, serialize_rows, write_archive, write_dataset

__all__ = [
    "DataFileError",
    "parse_dataset",
    "parse_rows",
    "read_dataset",
    "serialize_dataset",
    "serialize_rows",
    "write_archive",
    "write_dataset",
]
