"""Console rendering of dispatcher progress and run summaries.

:class:`ConsoleReporter` satisfies
:class:`~disk_space_optimizer.core.protocols.Reporter` and honours the
configured verbosity:

* quiet — only warnings, failures and the failure summary;
* normal — plus informational lines and one line per item;
* verbose — plus every command line and its captured output.
"""

from __future__ import annotations

from disk_space_optimizer.cli import exit_codes
from disk_space_optimizer.cli.console import console, escape
from disk_space_optimizer.config import Settings
from disk_space_optimizer.core.models import ItemOutcome, OutcomeStatus, RunSummary


class ConsoleReporter:
    """Render dispatcher events through the shared console proxy."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def info(self, message: str) -> None:
        if not self._settings.quiet:
            console.print(escape(message))

    def warn(self, message: str) -> None:
        console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def command(self, command_line: str, *, dry_run: bool = False) -> None:
        if dry_run:
            console.print(f"[cyan]dry-run:[/cyan] {escape(command_line)}")
        elif self._settings.verbose:
            console.print(f"[dim]$ {escape(command_line)}[/dim]")

    def outcome(self, outcome: ItemOutcome) -> None:
        name = escape(outcome.item.name)
        if outcome.status is OutcomeStatus.FAILED:
            console.print(f"  [red]✗[/red] {name}: {escape(outcome.error or 'failed')}")
            if self._settings.verbose and outcome.output is not None and outcome.output.stderr.strip():
                console.print(f"[dim]{escape(outcome.output.stderr.rstrip())}[/dim]")
            return
        if outcome.status is OutcomeStatus.SUCCEEDED and not self._settings.quiet:
            console.print(f"  [green]✓[/green] {name}")
            if self._settings.verbose and outcome.output is not None and outcome.output.stdout.strip():
                console.print(f"[dim]{escape(outcome.output.stdout.rstrip())}[/dim]")


def print_summary(summary: RunSummary, settings: Settings) -> None:
    """Print the per-invocation totals.

    Nothing is printed for a declined run or one that never reached the
    executor.  Quiet mode only prints when something failed.
    """
    attempted = [o for o in summary.outcomes if o.status is not OutcomeStatus.SKIPPED]
    if summary.declined and not attempted:
        return
    if not summary.outcomes:
        return
    if settings.quiet and summary.ok:
        return

    console.print()
    line = (
        f"[bold]{escape(summary.command)}:[/bold] "
        f"[green]{summary.succeeded} succeeded[/green], "
        f"[red]{summary.failed} failed[/red], "
        f"[dim]{summary.skipped} skipped[/dim]"
    )
    console.print(line)
    if settings.dry_run:
        console.print(f"[cyan]{escape('[DRY RUN]')} Nothing was changed.[/cyan]")
    elif summary.failed:
        console.print("[bold red]Some operations failed.[/bold red]")


def exit_code_for(summary: RunSummary) -> int:
    """Map a summary onto the process exit code."""
    if summary.failed:
        return exit_codes.COMMAND_FAILED
    return exit_codes.SUCCESS
