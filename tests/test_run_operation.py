"""End-to-end routing through ``main`` with subprocess mocked.

Covers the wiring between the argument parser, settings, dispatcher,
executor and the exit code mapping.
"""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

from disk_space_optimizer.cli import exit_codes
from disk_space_optimizer.cli.app import main


def _completed(returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


@patch("disk_space_optimizer.infra.executor.subprocess.run")
def test_dry_run_never_spawns(mock_run: MagicMock) -> None:
    code = main(["--yes", "--dry-run", "--package-manager", "dnf", "remove-package", "htop"])
    assert code == exit_codes.SUCCESS
    mock_run.assert_not_called()


@patch("disk_space_optimizer.infra.executor.is_root", return_value=True)
@patch("disk_space_optimizer.infra.executor.subprocess.run")
def test_confirmed_removal_runs_backend_command(mock_run: MagicMock, _root: MagicMock) -> None:
    mock_run.return_value = _completed()
    code = main(["--yes", "--package-manager", "apt", "remove-package", "htop"])
    assert code == exit_codes.SUCCESS
    mock_run.assert_called_once()
    assert mock_run.call_args.args[0] == ["apt-get", "remove", "-y", "htop"]


@patch("disk_space_optimizer.infra.executor.is_root", return_value=True)
@patch("disk_space_optimizer.infra.executor.subprocess.run")
def test_failed_command_maps_to_command_failed(mock_run: MagicMock, _root: MagicMock) -> None:
    mock_run.side_effect = [_completed(), _completed(returncode=100, stderr="E: Unable to locate package nosuch")]
    code = main(["-y", "--package-manager", "apt", "remove-package", "htop", "nosuch"])
    assert code == exit_codes.COMMAND_FAILED
    assert mock_run.call_count == 2


@patch("disk_space_optimizer.infra.executor.subprocess.run")
def test_declined_confirmation_exits_zero(mock_run: MagicMock) -> None:
    with patch("disk_space_optimizer.cli.gate._read_terminal", return_value="n"):
        code = main(["--package-manager", "pacman", "clean-package-cache"])
    assert code == exit_codes.SUCCESS
    mock_run.assert_not_called()


@patch("disk_space_optimizer.infra.executor.subprocess.run")
def test_closed_stdin_is_a_decline(mock_run: MagicMock) -> None:
    with patch("disk_space_optimizer.cli.gate._read_terminal", side_effect=EOFError):
        code = main(["--package-manager", "dnf", "clean-package-cache"])
    assert code == exit_codes.SUCCESS
    mock_run.assert_not_called()
