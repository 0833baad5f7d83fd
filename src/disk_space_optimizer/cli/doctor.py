"""``disk-space-optimizer doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment has the tools the clean-up commands
shell out to.

This module lives in the CLI layer — it may import from ``infra``
and renders via Rich.  It never runs a destructive command.
"""

from __future__ import annotations

import platform
import shutil
import sys

from disk_space_optimizer.cli import exit_codes
from disk_space_optimizer.cli.console import console
from disk_space_optimizer.config import Settings
from disk_space_optimizer.infra.executor import is_root
from disk_space_optimizer.infra.package_managers import detect_package_manager
from disk_space_optimizer.version import __version__

_OK = "[green]OK[/green]"
_WARN = "[yellow]WARN[/yellow]"
_FAIL = "[red]FAIL[/red]"


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    major, minor = sys.version_info[:2]
    ok = (major, minor) >= (3, 10)
    status = _OK if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _package_manager_check(settings: Settings) -> tuple[str, str, str]:
    """Return (label, value, status) for the package manager row."""
    if settings.package_manager is not None:
        return "Package manager", f"{settings.package_manager} (configured)", _OK
    detected = detect_package_manager()
    if detected is None:
        return "Package manager", "none detected", _FAIL
    return "Package manager", detected, _OK


def _privilege_check(settings: Settings) -> tuple[str, str, str]:
    """Return (label, value, status) for the privilege row."""
    if is_root():
        return "Privileges", "root", _OK
    if not settings.use_sudo:
        return "Privileges", "sudo disabled", _WARN
    sudo = shutil.which("sudo")
    if sudo is None:
        return "Privileges", "sudo not found", _WARN
    return "Privileges", f"sudo ({sudo})", _OK


def _journalctl_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the journalctl row."""
    path = shutil.which("journalctl")
    if path is None:
        return "journalctl", "not found", _WARN
    return "journalctl", path, _OK


def _kernel_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the running kernel row."""
    release = platform.release()
    if not release:
        return "Kernel", "unknown", _WARN
    return "Kernel", release, _OK


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system = platform.system()
    value = f"{system} ({platform.machine()})"
    status = _OK if system == "Linux" else _WARN
    return "OS", value, status


def _version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the tool version row."""
    return "disk-space-optimizer", __version__, _OK


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    if "FAIL" in status:
        return "FAIL"
    if "WARN" in status:
        return "WARN"
    if "OK" in status:
        return "OK"
    return status


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\ndisk-space-optimizer doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<22} {'Value':<32} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<22} {value:<32} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(settings: Settings) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    checks = [
        _version_check(),
        _python_version_check(),
        _os_check(),
        _kernel_check(),
        _package_manager_check(settings),
        _privilege_check(settings),
        _journalctl_check(),
    ]

    has_failure = any("FAIL" in status for _, _, status in checks)

    rich_available = True
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        rich_available = False

    if rich_available:
        table = Table(
            title="disk-space-optimizer doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=12)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)

        for label, value, status in checks:
            table.add_row(label, value, status)

        console.print()
        console.print(table)
        console.print()
    else:
        _print_plain_doctor_table(checks)

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR

    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
