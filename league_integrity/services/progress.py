from __future__ import annotations

import sys
from collections.abc import Iterator, Sequence
from typing import Any

from tqdm import tqdm

"""Progress display with tqdm (TTY only).

Loading and saving walk the eight data files in FILE_ORDER; iterating a
FileProgress yields the file names while a single bar counts them. Off a
TTY (CI, pipes) the bar is disabled so captured output stays clean.
"""

__all__ = [
    "FileProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Return True when stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class FileProgress:
    """Iterable over data file names that drives one tqdm bar.

    Parameters
    ----------
    names: Files to walk, in processing order
    description: Bar label ("Loading files", "Saving files")
    """

    def __init__(self, names: Sequence[str], *, description: str) -> None:
        self.names = list(names)
        self.description = description
        self.enabled = is_tty_enabled()
        self.completed = 0
        self._bar: Any = None

    def __iter__(self) -> Iterator[str]:
        bar = tqdm(
            self.names,
            desc=self.description,
            unit="file",
            leave=False,
            ncols=80,
            ascii=True,
            disable=not self.enabled,
        )
        self._bar = bar
        try:
            for name in bar:
                yield name
                self.completed += 1
        finally:
            bar.close()
            self._bar = None

    def note(self, **counts: Any) -> None:
        """Show per-file counters (rows, bytes) next to the bar."""
        if self.enabled and self._bar is not None:
            self._bar.set_postfix(**counts)
