"""Infrastructure: aged log file discovery and clean-up commands.

Only files that look rotated or archived are considered, so live logs
that a daemon still appends to are never offered for deletion.

Rules
-----
* Read-only scanning via :func:`os.walk`; deletion happens through the
  command executor so every removal is recorded as an outcome.
* Symlinks are never followed or offered.
* No ``print()``.
"""

from __future__ import annotations

import fnmatch
import os
import time
from collections.abc import Callable
from pathlib import Path

from disk_space_optimizer.core.models import CandidateItem
from disk_space_optimizer.core.protocols import LogScan
from disk_space_optimizer.exceptions import EnumerationError

SECONDS_PER_DAY = 86_400

LOG_PATTERNS: tuple[str, ...] = (
    "*.log",
    "*.log.*",
    "*.gz",
    "*.xz",
    "*.bz2",
    "*.zst",
    "*.old",
    "*.[0-9]",
    "*.[0-9][0-9]",
)


def is_log_name(name: str) -> bool:
    """Return ``True`` when *name* matches one of :data:`LOG_PATTERNS`."""
    return any(fnmatch.fnmatch(name, pattern) for pattern in LOG_PATTERNS)


class LogFileScanner:
    """Concrete :class:`~disk_space_optimizer.core.protocols.LogFileSource`.

    Parameters
    ----------
    clock:
        Returns the current epoch time; injectable for tests.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def scan(self, root: Path, retention_days: int) -> LogScan:
        """Find log files under *root* last modified more than *retention_days* ago.

        Items are sorted by path.  Paths that cannot be read are
        reported in :attr:`LogScan.unreadable` rather than aborting.

        Raises
        ------
        EnumerationError
            When *root* itself is missing or not a directory.
        """
        if not root.is_dir():
            raise EnumerationError(
                f"Log directory not found: {root}",
                hint="Pass an existing directory with --log-dir.",
            )

        now = self._clock()
        cutoff = now - retention_days * SECONDS_PER_DAY
        unreadable: list[Path] = []

        def _on_error(exc: OSError) -> None:
            unreadable.append(Path(exc.filename) if exc.filename else root)

        items: list[CandidateItem] = []
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_on_error):
            for filename in filenames:
                if not is_log_name(filename):
                    continue
                path = Path(dirpath) / filename
                try:
                    stat = path.lstat()
                except OSError:
                    unreadable.append(path)
                    continue
                if path.is_symlink() or not path.is_file():
                    continue
                if stat.st_mtime >= cutoff:
                    continue
                items.append(
                    CandidateItem(
                        str(path),
                        age_days=int((now - stat.st_mtime) // SECONDS_PER_DAY),
                        size=stat.st_size,
                    )
                )

        items.sort(key=lambda item: item.name)
        return LogScan(items=tuple(items), unreadable=tuple(unreadable))

    def delete_command(self, item: CandidateItem) -> list[str]:
        return ["rm", "-f", "--", item.argument]

    def vacuum_command(self, retention_days: int) -> list[str]:
        return ["journalctl", f"--vacuum-time={retention_days}d"]
