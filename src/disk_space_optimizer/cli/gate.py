"""Interactive confirmation gate for every destructive operation.

This module is responsible for:

* Asking yes/no questions until a recognised answer is given.
* Rendering candidate items as a numbered Rich table and reading an
  index selection.
* Reading free-form answers (package names, retention days).

Answer parsing lives in :mod:`disk_space_optimizer.core.responses`;
this module only loops, renders and reads.  A closed standard input is
always surfaced as :class:`InputUnavailableError` — it is never taken
as a "yes".
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Sequence
from typing import Any

from disk_space_optimizer.cli.console import console, escape
from disk_space_optimizer.config import Settings
from disk_space_optimizer.core.models import CandidateItem, DecisionKind
from disk_space_optimizer.core.responses import parse_selection, parse_yes_no
from disk_space_optimizer.exceptions import EnvironmentError, InputUnavailableError

Reader = Callable[[str], str]

SELECTION_HELP = "numbers like 1,3 or 2-4, 'all' or 'none'"


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for candidate rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


def _read_terminal(prompt: str) -> str:
    """Default reader: one line from stdin via the console proxy."""
    if sys.stdin is None or sys.stdin.closed:
        raise EOFError("standard input is not available")
    return console.input(prompt)


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms — no I/O themselves)
# ---------------------------------------------------------------------------

def _format_size(size: int | None) -> str:
    """Convert bytes to a human-readable string, or ``"—"``."""
    if size is None:
        return "—"
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _format_age(age_days: int | None) -> str:
    if age_days is None:
        return "—"
    return f"{age_days}d"


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

class TerminalGate:
    """Concrete :class:`~disk_space_optimizer.core.protocols.Gate`.

    Parameters
    ----------
    settings:
        ``assume_yes`` answers :meth:`confirm` without reading.
    reader:
        Callable taking a prompt and returning one line.  Defaults to
        the terminal; tests inject scripted answers.  ``EOFError`` or
        ``OSError`` from the reader means input is unavailable.
    """

    def __init__(self, settings: Settings, *, reader: Reader | None = None) -> None:
        self._settings = settings
        self._reader: Reader = reader if reader is not None else _read_terminal

    def _read(self, prompt: str) -> str:
        try:
            return self._reader(prompt)
        except (EOFError, OSError) as exc:
            raise InputUnavailableError(
                "Standard input is not available.",
                hint="Run from an interactive terminal.",
            ) from exc

    # ------------------------------------------------------------------
    # Gate protocol
    # ------------------------------------------------------------------

    def confirm(self, prompt: str) -> bool:
        """Ask *prompt* until the answer is in the yes or no family."""
        if self._settings.assume_yes:
            console.print(f"[cyan]{escape(prompt)}[/cyan] yes [dim](--yes)[/dim]")
            return True

        question = f"[cyan]{escape(prompt)} {escape('[y/n]')}:[/cyan] "
        while True:
            decision = parse_yes_no(self._read(question))
            if decision.kind is DecisionKind.CONFIRMED:
                return True
            if decision.kind is DecisionKind.DECLINED:
                return False
            console.print(f"[yellow]{escape(decision.reason or '')}[/yellow]")

    def select(self, prompt: str, items: Sequence[CandidateItem]) -> list[CandidateItem]:
        """Show *items* numbered from 1 and return the chosen subset.

        Duplicates collapse and the result keeps list order.  An empty
        list means nothing was chosen.
        """
        if not items:
            return []

        self.show(prompt, items)
        question = f"[cyan]{escape(prompt)} ({escape(SELECTION_HELP)}):[/cyan] "
        while True:
            decision = parse_selection(self._read(question), len(items))
            if decision.kind is DecisionKind.CONFIRMED:
                return [items[index] for index in decision.indices]
            if decision.kind is DecisionKind.DECLINED:
                return []
            console.print(f"[yellow]{escape(decision.reason or '')}[/yellow]")

    def show(self, title: str, items: Sequence[CandidateItem]) -> None:
        """Print *items* as a numbered table."""
        table_class = _import_rich_table()

        with_age = any(item.age_days is not None for item in items)
        with_size = any(item.size is not None for item in items)

        table = table_class(
            title=escape(title),
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
        )
        table.add_column("#", justify="right", style="dim", width=4)
        table.add_column("Name", justify="left", min_width=12)
        if with_age:
            table.add_column("Age", justify="right", min_width=5)
        if with_size:
            table.add_column("Size", justify="right", min_width=9)

        for i, item in enumerate(items, start=1):
            row = [str(i), escape(item.name)]
            if with_age:
                row.append(_format_age(item.age_days))
            if with_size:
                row.append(_format_size(item.size))
            table.add_row(*row)

        console.print()
        console.print(table)
        console.print()

    def ask_text(self, prompt: str, default: str | None = None) -> str:
        """Read a free-form answer; an empty line selects *default*."""
        suffix = f" {escape(f'[{default}]')}" if default is not None else ""
        answer = self._read(f"[cyan]{escape(prompt)}{suffix}:[/cyan] ").strip()
        if not answer and default is not None:
            return default
        return answer
