"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters and the CLI
gate must satisfy.  Core code depends ONLY on these protocols — never on
concrete implementations — so distribution-specific behaviour stays
pluggable.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from disk_space_optimizer.core.models import CandidateItem, CommandOutput, ItemOutcome


class CommandRunner(Protocol):
    """Contract for the Command Executor."""

    def run(
        self,
        program: str,
        args: Sequence[str],
        *,
        privileged: bool = False,
    ) -> CommandOutput:
        """Run *program* with *args* and return its captured output.

        Raises
        ------
        CommandNotFoundError
            When *program* cannot be located.
        CommandFailedError
            When *program* exits with a non-zero status.
        """
        ...  # pragma: no cover


class Gate(Protocol):
    """Contract for the interactive Confirmation Gate.

    Every method raises
    :class:`~disk_space_optimizer.exceptions.InputUnavailableError` when
    standard input is closed.
    """

    def confirm(self, prompt: str) -> bool:
        ...  # pragma: no cover

    def select(self, prompt: str, items: Sequence[CandidateItem]) -> list[CandidateItem]:
        """Return the chosen subset of *items*, in list order (may be empty)."""
        ...  # pragma: no cover

    def show(self, title: str, items: Sequence[CandidateItem]) -> None:
        """Display *items* without asking for a selection."""
        ...  # pragma: no cover

    def ask_text(self, prompt: str, default: str | None = None) -> str:
        ...  # pragma: no cover


class Reporter(Protocol):
    """Contract for user-facing progress messages emitted by the dispatcher."""

    def info(self, message: str) -> None:
        ...  # pragma: no cover

    def warn(self, message: str) -> None:
        ...  # pragma: no cover

    def command(self, command_line: str, *, dry_run: bool = False) -> None:
        """Announce a command about to run (or that would run)."""
        ...  # pragma: no cover

    def outcome(self, outcome: ItemOutcome) -> None:
        """Report the result of one item as soon as it is known."""
        ...  # pragma: no cover


class PackageManager(Protocol):
    """Narrow contract for a distribution package manager backend."""

    name: str

    def remove_command(self, item: CandidateItem) -> list[str]:
        """Return the argv (program first) removing *item*."""
        ...  # pragma: no cover

    def clean_cache_command(self) -> list[str]:
        ...  # pragma: no cover

    def list_installed(self) -> list[CandidateItem]:
        """Enumerate installed packages by name.

        Raises
        ------
        EnumerationError
            When the query fails.
        """
        ...  # pragma: no cover

    def list_unused(self) -> list[CandidateItem]:
        """Enumerate packages the backend considers no longer needed.

        Raises
        ------
        EnumerationError
            When the query fails.
        """
        ...  # pragma: no cover

    def list_kernels(self) -> list[CandidateItem]:
        """Enumerate every installed kernel, running one included.

        Raises
        ------
        EnumerationError
            When the query fails or the backend cannot list kernels.
        """
        ...  # pragma: no cover


class KernelSource(Protocol):
    """Enumerates kernels that are safe to offer for removal."""

    def removable_kernels(self) -> list[CandidateItem]:
        """Installed kernels minus the running one."""
        ...  # pragma: no cover


@dataclass(frozen=True, slots=True)
class LogScan:
    """Result of scanning a log directory."""

    items: tuple[CandidateItem, ...]
    unreadable: tuple[Path, ...] = ()


class LogFileSource(Protocol):
    """Enumerates aged log files and builds their clean-up commands."""

    def scan(self, root: Path, retention_days: int) -> LogScan:
        """Raises :class:`EnumerationError` when *root* cannot be listed."""
        ...  # pragma: no cover

    def delete_command(self, item: CandidateItem) -> list[str]:
        ...  # pragma: no cover

    def vacuum_command(self, retention_days: int) -> list[str]:
        """Return the argv vacuuming the systemd journal."""
        ...  # pragma: no cover
