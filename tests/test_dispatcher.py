"""Tests for the command dispatcher (core/dispatcher.py).

Every collaborator is a hand-written fake: the executor records calls
and fails on demand, the gate replays scripted decisions, and the
package manager builds predictable command lines.  No subprocess, no
terminal.
"""

from __future__ import annotations

import os
import time
from collections.abc import Sequence
from pathlib import Path

import pytest

from disk_space_optimizer.cli.gate import TerminalGate
from disk_space_optimizer.config import Settings
from disk_space_optimizer.core.dispatcher import Dispatcher
from disk_space_optimizer.core.models import (
    CandidateItem,
    CommandOutput,
    ItemOutcome,
    OutcomeStatus,
)
from disk_space_optimizer.core.protocols import LogScan
from disk_space_optimizer.exceptions import (
    CommandFailedError,
    CommandNotFoundError,
    ConfigurationError,
    EnumerationError,
    InputUnavailableError,
)
from disk_space_optimizer.infra.log_files import LogFileScanner


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeExecutor:
    """Records every call; fails for arguments listed in *fail_on*."""

    def __init__(
        self,
        *,
        fail_on: Sequence[str] = (),
        missing: Sequence[str] = (),
    ) -> None:
        self.calls: list[tuple[str, tuple[str, ...], bool]] = []
        self._fail_on = set(fail_on)
        self._missing = set(missing)

    def run(self, program: str, args: Sequence[str], *, privileged: bool = False) -> CommandOutput:
        self.calls.append((program, tuple(args), privileged))
        if program in self._missing:
            raise CommandNotFoundError(f"{program} was not found on PATH.", program=program, args=args)
        if self._fail_on.intersection(args):
            raise CommandFailedError(
                f"{program} exited with status 1",
                program=program,
                args=args,
                returncode=1,
                stderr="error: target not found",
            )
        return CommandOutput(program=program, args=tuple(args), returncode=0, stdout="done")


class FakeGate:
    """Replays scripted answers; raises AssertionError on unexpected prompts."""

    def __init__(
        self,
        *,
        confirms: Sequence[bool | Exception] = (),
        selections: Sequence[Sequence[int] | Exception] = (),
        texts: Sequence[str | Exception] = (),
    ) -> None:
        self._confirms = list(confirms)
        self._selections = list(selections)
        self._texts = list(texts)
        self.prompts: list[str] = []
        self.shown: list[list[CandidateItem]] = []

    @staticmethod
    def _next(queue: list, prompt: str):  # type: ignore[no-untyped-def]
        if not queue:
            raise AssertionError(f"unexpected prompt: {prompt}")
        answer = queue.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self._next(self._confirms, prompt)

    def select(self, prompt: str, items: Sequence[CandidateItem]) -> list[CandidateItem]:
        self.prompts.append(prompt)
        indices = self._next(self._selections, prompt)
        return [items[i] for i in indices]

    def show(self, title: str, items: Sequence[CandidateItem]) -> None:
        self.shown.append(list(items))

    def ask_text(self, prompt: str, default: str | None = None) -> str:
        self.prompts.append(prompt)
        return self._next(self._texts, prompt)


class FakeReporter:
    def __init__(self) -> None:
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.commands: list[tuple[str, bool]] = []
        self.outcomes: list[ItemOutcome] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def command(self, command_line: str, *, dry_run: bool = False) -> None:
        self.commands.append((command_line, dry_run))

    def outcome(self, outcome: ItemOutcome) -> None:
        self.outcomes.append(outcome)


class FakePackages:
    name = "fakepm"

    def __init__(
        self,
        unused: Sequence[str] = (),
        *,
        installed: Sequence[str] = (),
        error: Exception | None = None,
    ) -> None:
        self._unused = list(unused)
        self._installed = list(installed)
        self._error = error

    def remove_command(self, item: CandidateItem) -> list[str]:
        return ["fakepm", "remove", item.argument]

    def clean_cache_command(self) -> list[str]:
        return ["fakepm", "clean"]

    def list_installed(self) -> list[CandidateItem]:
        return [CandidateItem(name) for name in self._installed]

    def list_unused(self) -> list[CandidateItem]:
        if self._error is not None:
            raise self._error
        return [CandidateItem(name) for name in self._unused]

    def list_kernels(self) -> list[CandidateItem]:
        return []


class FakeKernels:
    def __init__(self, versions: Sequence[str]) -> None:
        self._versions = list(versions)

    def removable_kernels(self) -> list[CandidateItem]:
        return [CandidateItem(version) for version in self._versions]


class FakeLogFiles:
    def __init__(self, items: Sequence[CandidateItem] = (), unreadable: Sequence[Path] = ()) -> None:
        self.scans: list[tuple[Path, int]] = []
        self._scan = LogScan(items=tuple(items), unreadable=tuple(unreadable))

    def scan(self, root: Path, retention_days: int) -> LogScan:
        self.scans.append((root, retention_days))
        return self._scan

    def delete_command(self, item: CandidateItem) -> list[str]:
        return ["rm", "-f", "--", item.argument]

    def vacuum_command(self, retention_days: int) -> list[str]:
        return ["journalctl", f"--vacuum-time={retention_days}d"]


def _dispatcher(
    gate: object,
    executor: FakeExecutor | None = None,
    *,
    settings: Settings | None = None,
    packages: FakePackages | None = None,
    kernels: FakeKernels | None = None,
    log_files: object | None = None,
    reporter: FakeReporter | None = None,
) -> tuple[Dispatcher, FakeExecutor, FakeReporter]:
    executor = executor or FakeExecutor()
    reporter = reporter or FakeReporter()
    dispatcher = Dispatcher(
        settings or Settings(),
        gate=gate,  # type: ignore[arg-type]
        executor=executor,
        reporter=reporter,
        packages=packages if packages is not None else FakePackages(),
        kernels=kernels,
        log_files=log_files,  # type: ignore[arg-type]
    )
    return dispatcher, executor, reporter


# ---------------------------------------------------------------------------
# remove-package
# ---------------------------------------------------------------------------

class TestRemovePackage:
    def test_confirmed_removes_each_package(self) -> None:
        dispatcher, executor, _ = _dispatcher(FakeGate(confirms=[True]))
        summary = dispatcher.remove_package(["htop", "nano"])
        assert [call[1] for call in executor.calls] == [("remove", "htop"), ("remove", "nano")]
        assert summary.succeeded == 2
        assert summary.ok

    def test_removal_runs_privileged(self) -> None:
        dispatcher, executor, _ = _dispatcher(FakeGate(confirms=[True]))
        dispatcher.remove_package(["htop"])
        assert executor.calls[0][2] is True

    def test_declined_runs_nothing(self) -> None:
        dispatcher, executor, reporter = _dispatcher(FakeGate(confirms=[False]))
        summary = dispatcher.remove_package(["htop"])
        assert executor.calls == []
        assert summary.declined
        assert summary.ok
        assert any("Aborted" in msg for msg in reporter.infos)

    def test_prompts_for_name_when_missing(self) -> None:
        gate = FakeGate(texts=["htop  nano"], confirms=[True])
        dispatcher, executor, _ = _dispatcher(gate)
        dispatcher.remove_package()
        assert [call[1][-1] for call in executor.calls] == ["htop", "nano"]

    def test_installed_packages_offered_for_selection(self) -> None:
        gate = FakeGate(selections=[[0, 2]], confirms=[True])
        packages = FakePackages(installed=["htop", "nano", "vim"])
        dispatcher, executor, _ = _dispatcher(gate, packages=packages)
        summary = dispatcher.remove_package()
        assert [call[1][-1] for call in executor.calls] == ["htop", "vim"]
        assert summary.succeeded == 2
        assert gate.prompts[0].startswith("Select installed")

    def test_empty_selection_falls_back_to_typed_names(self) -> None:
        gate = FakeGate(selections=[[]], texts=["nano"], confirms=[True])
        packages = FakePackages(installed=["htop", "nano"])
        dispatcher, executor, _ = _dispatcher(gate, packages=packages)
        dispatcher.remove_package()
        assert [call[1][-1] for call in executor.calls] == ["nano"]

    def test_input_unavailable_during_package_selection_declines(self) -> None:
        gate = FakeGate(selections=[InputUnavailableError("closed")])
        dispatcher, executor, _ = _dispatcher(gate, packages=FakePackages(installed=["htop"]))
        summary = dispatcher.remove_package()
        assert summary.declined
        assert executor.calls == []

    def test_explicit_names_skip_installed_listing(self) -> None:
        gate = FakeGate(confirms=[True])
        packages = FakePackages(installed=["htop", "nano"])
        dispatcher, executor, _ = _dispatcher(gate, packages=packages)
        dispatcher.remove_package(["nano"])
        assert len(gate.prompts) == 1
        assert executor.calls[0][1][-1] == "nano"

    def test_empty_name_is_a_no_op(self) -> None:
        dispatcher, executor, reporter = _dispatcher(FakeGate(texts=[""]))
        summary = dispatcher.remove_package()
        assert executor.calls == []
        assert summary.outcomes == []
        assert "No package name given." in reporter.infos

    def test_duplicate_names_collapse(self) -> None:
        dispatcher, executor, _ = _dispatcher(FakeGate(confirms=[True]))
        dispatcher.remove_package(["htop", "htop"])
        assert len(executor.calls) == 1

    def test_input_unavailable_while_asking_name_declines(self) -> None:
        gate = FakeGate(texts=[InputUnavailableError("closed")])
        dispatcher, executor, _ = _dispatcher(gate)
        summary = dispatcher.remove_package()
        assert summary.declined
        assert executor.calls == []

    def test_input_unavailable_at_confirmation_declines(self) -> None:
        gate = FakeGate(confirms=[InputUnavailableError("closed")])
        dispatcher, executor, _ = _dispatcher(gate)
        summary = dispatcher.remove_package(["htop"])
        assert summary.declined
        assert executor.calls == []

    def test_requires_package_manager(self) -> None:
        dispatcher = Dispatcher(
            Settings(),
            gate=FakeGate(),  # type: ignore[arg-type]
            executor=FakeExecutor(),
            reporter=FakeReporter(),
        )
        with pytest.raises(ConfigurationError):
            dispatcher.remove_package(["htop"])


# ---------------------------------------------------------------------------
# clean-package-cache
# ---------------------------------------------------------------------------

class TestCleanPackageCache:
    def test_confirmed_runs_clean_once(self) -> None:
        gate = FakeGate(confirms=[True])
        dispatcher, executor, _ = _dispatcher(gate)
        summary = dispatcher.clean_package_cache()
        assert executor.calls == [("fakepm", ("clean",), True)]
        assert summary.succeeded == 1
        assert len(gate.prompts) == 1

    def test_declined_runs_nothing(self) -> None:
        dispatcher, executor, _ = _dispatcher(FakeGate(confirms=[False]))
        summary = dispatcher.clean_package_cache()
        assert executor.calls == []
        assert summary.declined

    def test_failure_is_recorded(self) -> None:
        executor = FakeExecutor(fail_on=["clean"])
        dispatcher, _, _ = _dispatcher(FakeGate(confirms=[True]), executor)
        summary = dispatcher.clean_package_cache()
        assert summary.failed == 1
        assert not summary.ok


# ---------------------------------------------------------------------------
# uninstall-unused-apps
# ---------------------------------------------------------------------------

class TestUninstallUnusedApps:
    def test_selected_subset_is_removed(self) -> None:
        gate = FakeGate(selections=[[0, 2]], confirms=[True])
        packages = FakePackages(["libfoo", "libbar", "libbaz"])
        dispatcher, executor, _ = _dispatcher(gate, packages=packages)
        summary = dispatcher.uninstall_unused_apps()
        assert [call[1][-1] for call in executor.calls] == ["libfoo", "libbaz"]
        assert summary.succeeded == 2
        assert summary.skipped == 1

    def test_empty_candidates_skip_prompt(self) -> None:
        gate = FakeGate()
        dispatcher, executor, reporter = _dispatcher(gate, packages=FakePackages([]))
        summary = dispatcher.uninstall_unused_apps()
        assert gate.prompts == []
        assert executor.calls == []
        assert summary.outcomes == []
        assert any("No unused" in msg for msg in reporter.infos)

    def test_empty_selection_is_a_no_op(self) -> None:
        gate = FakeGate(selections=[[]])
        dispatcher, executor, _ = _dispatcher(gate, packages=FakePackages(["libfoo"]))
        summary = dispatcher.uninstall_unused_apps()
        assert executor.calls == []
        assert summary.declined
        assert summary.skipped == 1

    def test_enumeration_error_aborts_before_prompt(self) -> None:
        gate = FakeGate()
        packages = FakePackages(error=EnumerationError("repoquery failed"))
        dispatcher, executor, _ = _dispatcher(gate, packages=packages)
        with pytest.raises(EnumerationError):
            dispatcher.uninstall_unused_apps()
        assert gate.prompts == []
        assert executor.calls == []

    def test_input_unavailable_during_selection_declines(self) -> None:
        gate = FakeGate(selections=[InputUnavailableError("closed")])
        dispatcher, executor, _ = _dispatcher(gate, packages=FakePackages(["libfoo"]))
        summary = dispatcher.uninstall_unused_apps()
        assert summary.declined
        assert executor.calls == []


# ---------------------------------------------------------------------------
# remove-old-kernels
# ---------------------------------------------------------------------------

class TestRemoveOldKernels:
    def test_scenario_select_first_kernel(self) -> None:
        """Running 6.1.0 is excluded upstream; user picks index 1 and confirms."""
        reader_answers = ["1", "y"]

        def read(prompt: str) -> str:
            return reader_answers.pop(0)

        gate = TerminalGate(Settings(), reader=read)
        kernels = FakeKernels(["5.10.0", "5.15.0"])
        dispatcher, executor, _ = _dispatcher(gate, kernels=kernels)

        summary = dispatcher.remove_old_kernels()

        assert executor.calls == [("fakepm", ("remove", "5.10.0"), True)]
        assert summary.succeeded == 1
        assert summary.failed == 0
        assert summary.ok

    def test_declined_confirmation_runs_nothing(self) -> None:
        gate = FakeGate(selections=[[0, 1]], confirms=[False])
        dispatcher, executor, _ = _dispatcher(gate, kernels=FakeKernels(["5.10.0", "5.15.0"]))
        summary = dispatcher.remove_old_kernels()
        assert executor.calls == []
        assert summary.declined

    def test_no_old_kernels(self) -> None:
        gate = FakeGate()
        dispatcher, executor, reporter = _dispatcher(gate, kernels=FakeKernels([]))
        dispatcher.remove_old_kernels()
        assert gate.prompts == []
        assert any("No old kernel" in msg for msg in reporter.infos)

    def test_requires_kernel_source(self) -> None:
        dispatcher, _, _ = _dispatcher(FakeGate())
        with pytest.raises(ConfigurationError):
            dispatcher.remove_old_kernels()


# ---------------------------------------------------------------------------
# Fail-soft execution
# ---------------------------------------------------------------------------

class TestFailSoft:
    def test_failure_does_not_stop_batch(self) -> None:
        gate = FakeGate(selections=[[0, 1, 2]], confirms=[True])
        executor = FakeExecutor(fail_on=["5.15.0"])
        dispatcher, _, _ = _dispatcher(
            gate, executor, kernels=FakeKernels(["5.10.0", "5.15.0", "5.19.0"]),
        )
        summary = dispatcher.remove_old_kernels()
        assert len(executor.calls) == 3
        assert summary.succeeded == 2
        assert summary.failed == 1
        failed = [o for o in summary.outcomes if o.status is OutcomeStatus.FAILED]
        assert failed[0].item.name == "5.15.0"
        assert failed[0].output is not None
        assert failed[0].output.returncode == 1

    def test_failure_count_matches_non_zero_exits(self) -> None:
        gate = FakeGate(confirms=[True])
        executor = FakeExecutor(fail_on=["a", "c", "d"])
        dispatcher, _, _ = _dispatcher(gate, executor)
        summary = dispatcher.remove_package(["a", "b", "c", "d", "e"])
        assert summary.failed == 3
        assert summary.succeeded == 2

    def test_missing_program_is_recorded_per_item(self) -> None:
        gate = FakeGate(confirms=[True])
        executor = FakeExecutor(missing=["fakepm"])
        dispatcher, _, reporter = _dispatcher(gate, executor)
        summary = dispatcher.remove_package(["a", "b", "c"])
        assert [call[1][-1] for call in executor.calls] == ["a", "b", "c"]
        assert summary.failed == 3
        assert summary.skipped == 0
        assert [o.status for o in reporter.outcomes] == [OutcomeStatus.FAILED] * 3

    def test_missing_program_for_one_item_does_not_stop_the_next(self) -> None:
        gate = FakeGate(confirms=[True, True])
        executor = FakeExecutor(missing=["journalctl"])
        items = [CandidateItem("/var/log/a.log.1", size=1)]
        dispatcher, _, _ = _dispatcher(gate, executor, log_files=FakeLogFiles(items))
        summary = dispatcher.clean_up_log_files(5, journal=True)
        assert summary.succeeded == 1
        assert summary.failed == 1

    def test_dry_run_executes_nothing(self) -> None:
        gate = FakeGate(confirms=[True])
        dispatcher, executor, reporter = _dispatcher(gate, settings=Settings(dry_run=True))
        summary = dispatcher.remove_package(["htop"])
        assert executor.calls == []
        assert summary.skipped == 1
        assert reporter.commands == [("fakepm remove htop", True)]


# ---------------------------------------------------------------------------
# clean-up-log-files
# ---------------------------------------------------------------------------

def _age(path: Path, days: int) -> None:
    stamp = time.time() - days * 86_400
    os.utime(path, (stamp, stamp))


class TestCleanUpLogFiles:
    def test_all_files_newer_than_retention_shows_no_prompt(self, tmp_path: Path) -> None:
        for name in ("app.log", "app.log.1", "syslog.2.gz"):
            target = tmp_path / name
            target.write_text("x")
            _age(target, 3)

        gate = FakeGate()
        dispatcher, executor, reporter = _dispatcher(gate, log_files=LogFileScanner())
        summary = dispatcher.clean_up_log_files(30, log_dir=tmp_path)

        assert gate.prompts == []
        assert gate.shown == []
        assert executor.calls == []
        assert summary.outcomes == []
        assert summary.ok
        assert any("No log files older than 30" in msg for msg in reporter.infos)

    def test_confirmed_deletes_each_file(self) -> None:
        items = [
            CandidateItem("/var/log/a.log.1", age_days=40, size=100),
            CandidateItem("/var/log/b.gz", age_days=50, size=200),
        ]
        gate = FakeGate(confirms=[True])
        dispatcher, executor, _ = _dispatcher(gate, log_files=FakeLogFiles(items))
        summary = dispatcher.clean_up_log_files(30)
        assert executor.calls == [
            ("rm", ("-f", "--", "/var/log/a.log.1"), True),
            ("rm", ("-f", "--", "/var/log/b.gz"), True),
        ]
        assert gate.shown == [items]
        assert summary.succeeded == 2

    def test_uses_settings_log_dir_by_default(self, tmp_path: Path) -> None:
        log_files = FakeLogFiles()
        dispatcher, _, _ = _dispatcher(
            FakeGate(), settings=Settings(log_dir=tmp_path), log_files=log_files,
        )
        dispatcher.clean_up_log_files(10)
        assert log_files.scans == [(tmp_path, 10)]

    def test_declined_deletes_nothing(self) -> None:
        items = [CandidateItem("/var/log/a.log.1", size=1)]
        dispatcher, executor, _ = _dispatcher(
            FakeGate(confirms=[False]), log_files=FakeLogFiles(items),
        )
        summary = dispatcher.clean_up_log_files(30)
        assert executor.calls == []
        assert summary.declined

    def test_prompts_for_days_with_default(self) -> None:
        log_files = FakeLogFiles()
        gate = FakeGate(texts=[""])
        dispatcher, _, _ = _dispatcher(
            gate, settings=Settings(retention_days=7), log_files=log_files,
        )
        dispatcher.clean_up_log_files()
        assert log_files.scans[0][1] == 7

    def test_invalid_days_reprompt(self) -> None:
        log_files = FakeLogFiles()
        gate = FakeGate(texts=["soon", "-2", "14"])
        dispatcher, _, reporter = _dispatcher(gate, log_files=log_files)
        dispatcher.clean_up_log_files()
        assert log_files.scans[0][1] == 14
        assert len(reporter.warnings) == 2

    def test_superscript_days_reprompt(self) -> None:
        log_files = FakeLogFiles()
        gate = FakeGate(texts=["²", "14"])
        dispatcher, _, reporter = _dispatcher(gate, log_files=log_files)
        dispatcher.clean_up_log_files()
        assert log_files.scans[0][1] == 14
        assert len(reporter.warnings) == 1

    def test_unreadable_paths_are_warned(self) -> None:
        log_files = FakeLogFiles(unreadable=[Path("/var/log/private")])
        dispatcher, _, reporter = _dispatcher(FakeGate(), log_files=log_files)
        dispatcher.clean_up_log_files(30)
        assert any("/var/log/private" in msg for msg in reporter.warnings)

    def test_journal_vacuum_after_its_own_confirmation(self) -> None:
        gate = FakeGate(confirms=[True])
        dispatcher, executor, _ = _dispatcher(gate, log_files=FakeLogFiles())
        summary = dispatcher.clean_up_log_files(5, journal=True)
        assert executor.calls == [("journalctl", ("--vacuum-time=5d",), True)]
        assert summary.succeeded == 1

    def test_journal_declined(self) -> None:
        gate = FakeGate(confirms=[False])
        dispatcher, executor, _ = _dispatcher(gate, log_files=FakeLogFiles())
        summary = dispatcher.clean_up_log_files(5, journal=True)
        assert executor.calls == []
        assert summary.declined

    def test_enumeration_error_propagates(self, tmp_path: Path) -> None:
        gate = FakeGate()
        dispatcher, _, _ = _dispatcher(gate, log_files=LogFileScanner())
        with pytest.raises(EnumerationError):
            dispatcher.clean_up_log_files(30, log_dir=tmp_path / "missing")
        assert gate.prompts == []
