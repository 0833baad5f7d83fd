"""CLI application entry point and command routing for disk-space-optimizer.

This module is the **sole error boundary** for the entire application.
It catches :class:`~disk_space_optimizer.exceptions.DiskSpaceOptimizerError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages via Rich and returning well-defined exit codes.

Architecture notes
------------------
* No clean-up logic lives here — each subcommand is delegated to the
  :class:`~disk_space_optimizer.core.dispatcher.Dispatcher`.
* Settings are resolved once per invocation and passed explicitly.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import platform
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from disk_space_optimizer.cli import exit_codes
from disk_space_optimizer.cli.console import console, escape
from disk_space_optimizer.config import SUPPORTED_PACKAGE_MANAGERS, Settings, Verbosity, load_settings
from disk_space_optimizer.exceptions import DiskSpaceOptimizerError
from disk_space_optimizer.version import __version__

if TYPE_CHECKING:
    from disk_space_optimizer.core.dispatcher import Dispatcher
    from disk_space_optimizer.core.models import RunSummary

PACKAGE_COMMANDS: frozenset[str] = frozenset(
    {"remove-package", "clean-package-cache", "uninstall-unused-apps", "remove-old-kernels"}
)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a whole number") from None
    if number < 0:
        raise argparse.ArgumentTypeError("must be zero or greater")
    return number


def _add_common_options(parser: argparse.ArgumentParser, *, suppress: bool) -> None:
    """Add the global flags to *parser*.

    Subparsers use ``SUPPRESS`` defaults so a flag given before the
    subcommand is not reset by the subparser.
    """
    def default(value: object) -> object:
        return argparse.SUPPRESS if suppress else value

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=default(False),
        help="Show every command and its output.",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=default(False),
        help="Only show warnings, failures and prompts.",
    )
    parser.add_argument(
        "-y", "--yes",
        action="store_true",
        default=default(False),
        help="Answer yes to confirmation prompts (selections are still asked).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=default(False),
        help="Show the commands that would run without running them.",
    )
    parser.add_argument(
        "--package-manager",
        choices=SUPPORTED_PACKAGE_MANAGERS,
        default=default(None),
        help="Package manager to use (default: auto-detect).",
    )
    parser.add_argument(
        "--no-sudo",
        action="store_true",
        default=default(False),
        help="Never prefix privileged commands with sudo.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    * ``disk-space-optimizer``                 — interactive operation menu
    * ``disk-space-optimizer <subcommand>``    — run one operation
    * ``disk-space-optimizer doctor``          — environment diagnostics
    * ``disk-space-optimizer --version``
    """
    parser = argparse.ArgumentParser(
        prog="disk-space-optimizer",
        description="Free disk space by removing packages, caches, old kernels and logs.",
        epilog="Example: disk-space-optimizer --dry-run remove-old-kernels",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    _add_common_options(parser, suppress=False)

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    def add(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text, description=help_text)
        _add_common_options(sub, suppress=True)
        return sub

    remove = add("remove-package", "Remove one or more packages.")
    remove.add_argument(
        "packages",
        nargs="*",
        metavar="PACKAGE",
        help="Package name(s); chosen from the installed packages when omitted.",
    )
    add("clean-package-cache", "Clean the package manager cache.")
    add("uninstall-unused-apps", "Select and remove packages that are no longer needed.")
    add("remove-old-kernels", "Select and remove installed kernels other than the running one.")

    logs = add("clean-up-log-files", "Delete rotated log files older than a retention period.")
    logs.add_argument(
        "--days",
        type=_non_negative_int,
        default=None,
        help="Retention in days (prompted for when omitted).",
    )
    logs.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory to scan (default: /var/log).",
    )
    logs.add_argument(
        "--journal",
        action="store_true",
        help="Also vacuum the systemd journal to the same retention.",
    )

    add("doctor", "Check the environment for the tools this program uses.")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    if args.verbose:
        verbosity = Verbosity.VERBOSE
    elif args.quiet:
        verbosity = Verbosity.QUIET
    else:
        verbosity = Verbosity.NORMAL

    return load_settings(
        package_manager=args.package_manager,
        use_sudo=False if args.no_sudo else None,
        dry_run=args.dry_run,
        assume_yes=args.yes,
        verbosity=verbosity,
    )


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _build_dispatcher(settings: Settings, command: str) -> Dispatcher:
    """Wire infra collaborators, gate and reporter into a dispatcher."""
    from disk_space_optimizer.cli.gate import TerminalGate
    from disk_space_optimizer.cli.report import ConsoleReporter
    from disk_space_optimizer.core.dispatcher import Dispatcher
    from disk_space_optimizer.infra.executor import SubprocessExecutor
    from disk_space_optimizer.infra.kernels import KernelInventory
    from disk_space_optimizer.infra.log_files import LogFileScanner
    from disk_space_optimizer.infra.package_managers import get_package_manager

    executor = SubprocessExecutor(use_sudo=settings.use_sudo)
    packages = None
    kernels = None
    if command in PACKAGE_COMMANDS:
        packages = get_package_manager(executor, settings.package_manager)
        kernels = KernelInventory(packages)

    return Dispatcher(
        settings,
        gate=TerminalGate(settings),
        executor=executor,
        reporter=ConsoleReporter(settings),
        packages=packages,
        kernels=kernels,
        log_files=LogFileScanner(),
    )


def _run_operation(settings: Settings, command: str, args: argparse.Namespace | None = None) -> int:
    """Run one clean-up subcommand and render its summary."""
    from disk_space_optimizer.cli.report import exit_code_for, print_summary

    dispatcher = _build_dispatcher(settings, command)
    if not settings.quiet:
        console.print(f"\n[bold]{escape(command)}[/bold]")

    operations: dict[str, Callable[[], RunSummary]] = {
        "remove-package": lambda: dispatcher.remove_package(
            getattr(args, "packages", None) or (),
        ),
        "clean-package-cache": dispatcher.clean_package_cache,
        "uninstall-unused-apps": dispatcher.uninstall_unused_apps,
        "remove-old-kernels": dispatcher.remove_old_kernels,
        "clean-up-log-files": lambda: dispatcher.clean_up_log_files(
            getattr(args, "days", None),
            log_dir=getattr(args, "log_dir", None),
            journal=getattr(args, "journal", False),
        ),
    }
    summary = operations[command]()
    print_summary(summary, settings)
    return exit_code_for(summary)


def _handle_menu(settings: Settings) -> int:
    """Run the operations picked from the interactive menu, in order.

    A failing operation is reported and the next one still runs.
    """
    from disk_space_optimizer.cli.menu import prompt_operations

    if not settings.quiet:
        console.print(f"[bold]Welcome to disk space optimizer CLI for {escape(platform.system())}![/bold]")
    selected = prompt_operations()
    if not selected:
        console.print("Nothing selected.")
        return exit_codes.SUCCESS

    code = exit_codes.SUCCESS
    for command in selected:
        try:
            result = _run_operation(settings, command)
        except DiskSpaceOptimizerError as exc:
            _render_error(exc)
            result = exit_codes.GENERAL_ERROR
        if result != exit_codes.SUCCESS:
            code = result
    return code


def _handle_doctor(settings: Settings) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from disk_space_optimizer.cli.doctor import run_doctor

    return run_doctor(settings)


def _stdin_is_interactive() -> bool:
    try:
        return sys.stdin is not None and sys.stdin.isatty()
    except (AttributeError, ValueError, OSError):
        return False


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the disk-space-optimizer CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.quiet and args.verbose:
        parser.error("--quiet and --verbose cannot be used together")

    command: str | None = args.command

    if command is None and not _stdin_is_interactive():
        parser.print_help()
        return exit_codes.SUCCESS

    settings = _settings_from_args(args)

    if command is None:
        return _handle_menu(settings)
    if command == "doctor":
        return _handle_doctor(settings)
    return _run_operation(settings, command, args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def _render_error(exc: DiskSpaceOptimizerError) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    if exc.hint:
        console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")


def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except DiskSpaceOptimizerError as exc:
        _render_error(exc)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
