from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.issue import Issue

"""Issue log buffering.

Validation issues are buffered in memory and written as JSON Lines
(fixed key set, see ``Issue.to_json_line``) to
``<log_dir>/validation-YYYYMMDD-HHMMSS.log``. The file name is fixed on
first access so repeated flushes of one run append to the same file.
Serial use only.
"""

__all__ = [
    "IssueLogBuffer",
]

DEFAULT_LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class IssueLogBuffer:
    """In-memory buffer of issues. ``flush`` writes JSON Lines."""

    def __init__(self, log_dir: Path | None = None) -> None:
        self.log_dir = log_dir or DEFAULT_LOGS_DIR
        self._records: list[Issue] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.log_dir / f"validation-{stamp}.log"
        return self._file_path

    def append(self, issue: Issue) -> None:
        self._records.append(issue)

    def extend(self, issues: Iterable[Issue]) -> None:
        self._records.extend(issues)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered issues to the log file.

        Returns:
            The log file path, or None when nothing was buffered (no file is created)
        """
        if not self._records:
            return None
        fp = self.file_path
        stamp = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        with fp.open("a", encoding="utf-8") as f:
            for issue in self._records:
                f.write(issue.to_json_line(stamp) + "\n")
        self._records.clear()
        return fp
