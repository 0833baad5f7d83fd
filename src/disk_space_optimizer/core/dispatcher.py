"""Command dispatcher — one procedure per CLI subcommand.

Every procedure follows the same sequence:

1. enumerate candidates through a collaborator;
2. short-circuit with an informational message when there are none;
3. gate the destructive step behind :class:`Gate` selection/confirmation;
4. run one command per confirmed item, fail-soft;
5. return a :class:`RunSummary` for the CLI to render.

Guarantees
----------
* No ``print()`` and no terminal access — all user interaction goes
  through the injected gate and reporter.
* A declined prompt, an empty selection or unavailable input never
  reaches the executor.
* ``EnumerationError`` propagates before any prompt is shown.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TypeVar

from disk_space_optimizer.config import Settings
from disk_space_optimizer.core.models import (
    CandidateItem,
    CommandOutput,
    ItemOutcome,
    OutcomeStatus,
    RunSummary,
)
from disk_space_optimizer.core.protocols import (
    CommandRunner,
    Gate,
    KernelSource,
    LogFileSource,
    PackageManager,
    Reporter,
)
from disk_space_optimizer.core.responses import parse_days
from disk_space_optimizer.exceptions import (
    CommandFailedError,
    CommandNotFoundError,
    ConfigurationError,
    InputUnavailableError,
)

T = TypeVar("T")

CommandBuilder = Callable[[CandidateItem], list[str]]

NO_INPUT_MESSAGE = "No interactive input available; treating as decline. Nothing was changed."


def _format_size(size: int) -> str:
    mb = size / (1024 * 1024)
    return f"{mb:.1f} MB"


class Dispatcher:
    """Drives each clean-up operation from enumeration to summary.

    Parameters
    ----------
    settings:
        Resolved per-invocation settings (dry-run, verbosity, defaults).
    gate:
        Interactive confirmation gate.
    executor:
        Command executor used for every destructive action.
    reporter:
        Sink for informational messages and per-item results.
    packages:
        Package manager backend.  Only required by package operations.
    kernels:
        Source of removable kernels.  Only required by kernel removal.
    log_files:
        Log file scanner.  Only required by log clean-up.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        gate: Gate,
        executor: CommandRunner,
        reporter: Reporter,
        packages: PackageManager | None = None,
        kernels: KernelSource | None = None,
        log_files: LogFileSource | None = None,
    ) -> None:
        self._settings = settings
        self._gate = gate
        self._executor = executor
        self._reporter = reporter
        self._packages = packages
        self._kernels = kernels
        self._log_files = log_files

    # ------------------------------------------------------------------
    # Subcommands
    # ------------------------------------------------------------------

    def remove_package(self, names: Sequence[str] = ()) -> RunSummary:
        """Remove the named packages.

        Without *names*, installed packages are offered for selection;
        an empty list or an empty selection falls back to typing names.
        """
        packages = self._require(self._packages, "package manager")
        summary = RunSummary("remove-package")

        if not names:
            installed = packages.list_installed()
            try:
                if installed:
                    chosen = self._gate.select("Select installed package(s) to remove", installed)
                    names = [item.name for item in chosen]
                if not names:
                    answer = self._gate.ask_text("Enter package name(s) to remove")
                    names = answer.split()
            except InputUnavailableError:
                return self._decline(summary, NO_INPUT_MESSAGE)

        unique = list(dict.fromkeys(name.strip() for name in names if name.strip()))
        if not unique:
            self._reporter.info("No package name given.")
            return summary

        items = [CandidateItem(name) for name in unique]
        prompt = f"Remove {len(items)} package(s): {', '.join(unique)}?"
        if self._confirm(summary, prompt):
            self._run_items(summary, items, packages.remove_command)
        return summary

    def clean_package_cache(self) -> RunSummary:
        """Clear the package manager's download cache after one confirmation."""
        packages = self._require(self._packages, "package manager")
        summary = RunSummary("clean-package-cache")

        item = CandidateItem(f"{packages.name} package cache")
        if self._confirm(summary, f"Clean the {packages.name} package cache?"):
            self._run_items(summary, [item], lambda _item: packages.clean_cache_command())
        return summary

    def uninstall_unused_apps(self) -> RunSummary:
        """Offer packages the backend reports as unneeded for removal."""
        packages = self._require(self._packages, "package manager")
        summary = RunSummary("uninstall-unused-apps")

        items = packages.list_unused()
        self._select_and_run(summary, items, "unused package(s)", packages.remove_command)
        return summary

    def remove_old_kernels(self) -> RunSummary:
        """Offer every installed kernel except the running one for removal."""
        packages = self._require(self._packages, "package manager")
        kernels = self._require(self._kernels, "kernel source")
        summary = RunSummary("remove-old-kernels")

        items = kernels.removable_kernels()
        self._select_and_run(summary, items, "old kernel(s)", packages.remove_command)
        return summary

    def clean_up_log_files(
        self,
        retention_days: int | None = None,
        *,
        log_dir: Path | None = None,
        journal: bool = False,
    ) -> RunSummary:
        """Delete log files older than *retention_days* under *log_dir*.

        When *journal* is set, the systemd journal is vacuumed to the
        same retention after a separate confirmation.
        """
        log_files = self._require(self._log_files, "log file scanner")
        summary = RunSummary("clean-up-log-files")
        root = log_dir if log_dir is not None else self._settings.log_dir

        if retention_days is None:
            try:
                retention_days = self._ask_retention_days()
            except InputUnavailableError:
                return self._decline(summary, NO_INPUT_MESSAGE)

        scan = log_files.scan(root, retention_days)
        for path in scan.unreadable:
            self._reporter.warn(f"Skipped unreadable path: {path}")

        items = list(scan.items)
        if not items:
            self._reporter.info(
                f"No log files older than {retention_days} day(s) under {root}."
            )
        else:
            self._gate.show(f"Log files older than {retention_days} day(s)", items)
            total = sum(item.size or 0 for item in items)
            prompt = f"Delete {len(items)} log file(s), {_format_size(total)} in total?"
            if self._confirm(summary, prompt):
                self._run_items(summary, items, log_files.delete_command)

        if journal:
            item = CandidateItem(f"journal entries older than {retention_days}d")
            prompt = f"Vacuum systemd journal entries older than {retention_days} day(s)?"
            if self._confirm(summary, prompt):
                self._run_items(
                    summary,
                    [item],
                    lambda _item: log_files.vacuum_command(retention_days),
                )
        return summary

    # ------------------------------------------------------------------
    # Gate helpers
    # ------------------------------------------------------------------

    def _ask_retention_days(self) -> int:
        default = self._settings.retention_days
        while True:
            answer = self._gate.ask_text(
                "Delete log files older than how many days?",
                default=str(default),
            )
            days = parse_days(answer, default)
            if days is not None:
                return days
            self._reporter.warn(f"{answer.strip()!r} is not a whole number of days.")

    def _confirm(self, summary: RunSummary, prompt: str) -> bool:
        """Ask *prompt*; mark *summary* declined unless confirmed."""
        try:
            confirmed = self._gate.confirm(prompt)
        except InputUnavailableError:
            self._decline(summary, NO_INPUT_MESSAGE)
            return False
        if not confirmed:
            self._decline(summary, "Aborted. Nothing was changed.")
        return confirmed

    def _select_and_run(
        self,
        summary: RunSummary,
        items: Sequence[CandidateItem],
        noun: str,
        build: CommandBuilder,
    ) -> None:
        if not items:
            self._reporter.info(f"No {noun} found.")
            return

        try:
            chosen = self._gate.select(f"Select {noun} to remove", items)
        except InputUnavailableError:
            self._decline(summary, NO_INPUT_MESSAGE)
            return

        for item in items:
            if item not in chosen:
                summary.record(ItemOutcome(item, OutcomeStatus.SKIPPED, error="not selected"))
        if not chosen:
            self._decline(summary, "Nothing selected. Nothing was changed.")
            return

        names = ", ".join(item.name for item in chosen)
        if self._confirm(summary, f"Remove {len(chosen)} item(s): {names}?"):
            self._run_items(summary, chosen, build)

    def _decline(self, summary: RunSummary, message: str) -> RunSummary:
        summary.declined = True
        self._reporter.info(message)
        return summary

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run_items(
        self,
        summary: RunSummary,
        items: Sequence[CandidateItem],
        build: CommandBuilder,
    ) -> None:
        """Run one command per item; failures do not stop the batch.

        A non-zero exit and a missing program are both recorded against
        the item, and the next item is still attempted.
        """
        for item in items:
            program, *args = build(item)
            command_line = " ".join((program, *args))

            if self._settings.dry_run:
                self._reporter.command(command_line, dry_run=True)
                self._record(summary, ItemOutcome(item, OutcomeStatus.SKIPPED, error="dry run"))
                continue

            self._reporter.command(command_line)
            try:
                output = self._executor.run(program, args, privileged=True)
            except CommandFailedError as exc:
                failed = CommandOutput(
                    program=exc.program,
                    args=exc.args_list,
                    returncode=exc.returncode,
                    stdout=exc.stdout,
                    stderr=exc.stderr,
                )
                self._record(summary, ItemOutcome(item, OutcomeStatus.FAILED, failed, str(exc)))
            except CommandNotFoundError as exc:
                self._record(summary, ItemOutcome(item, OutcomeStatus.FAILED, error=str(exc)))
            else:
                self._record(summary, ItemOutcome(item, OutcomeStatus.SUCCEEDED, output))

    def _record(self, summary: RunSummary, outcome: ItemOutcome) -> None:
        summary.record(outcome)
        self._reporter.outcome(outcome)

    @staticmethod
    def _require(collaborator: T | None, what: str) -> T:
        if collaborator is None:
            raise ConfigurationError(f"No {what} configured for this command.")
        return collaborator
