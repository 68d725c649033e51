from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime

"""Issue model for validation diagnostics.

An Issue is one finding of the validator. ``line`` is the 1-based line
number within ``file``; 0 marks a finding that is not tied to a line (for
example a federation without weather rows).

Issues serialize to JSON Lines with a fixed key set, mirroring the issue
log contract used by the CLI.
"""

__all__ = [
    "Issue",
    "ValidationReport",
    "SEVERITY_ERROR",
    "SEVERITY_WARNING",
    "JSON_KEYS",
]

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

JSON_KEYS = ("timestamp", "file", "line", "severity", "code", "message")


@dataclass(frozen=True)
class Issue:
    """Single validation finding.

    Attributes:
        file: Data file name the finding belongs to
        line: 1-based line number, 0 when not line specific
        severity: ``error`` blocks export, ``warning`` does not
        code: Stable UPPER_SNAKE classification
        message: Human readable description
    """
    file: str
    line: int
    severity: str
    code: str
    message: str

    @staticmethod
    def error(file: str, line: int, code: str, message: str) -> Issue:
        return Issue(file=file, line=line, severity=SEVERITY_ERROR, code=code, message=message)

    @staticmethod
    def warning(file: str, line: int, code: str, message: str) -> Issue:
        return Issue(file=file, line=line, severity=SEVERITY_WARNING, code=code, message=message)

    @property
    def is_error(self) -> bool:
        return self.severity == SEVERITY_ERROR

    def to_json_line(self, timestamp: str | None = None) -> str:
        """Serialize to one JSON line.

        Parameters:
            timestamp: ISO8601 UTC stamp; current time when omitted

        Returns:
            JSON string with exactly the contract keys
        """
        ts = timestamp or datetime.now(UTC).isoformat().replace("+00:00", "Z")
        payload = {"timestamp": ts, **asdict(self)}
        return json.dumps({k: payload[k] for k in JSON_KEYS}, ensure_ascii=False)

    def describe(self) -> str:
        where = f"{self.file}:{self.line}" if self.line else self.file
        return f"{where} {self.code} {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    """Complete result of one validation pass."""
    issues: list[Issue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        # warning は出力を妨げない
        return not any(i.is_error for i in self.issues)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.is_error]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if not i.is_error]

    def codes(self) -> list[str]:
        return [i.code for i in self.issues]

    def for_file(self, name: str) -> list[Issue]:
        return [i for i in self.issues if i.file == name]
