"""Interactive operation menu shown when no subcommand is given.

Presents the clean-up operations as a questionary checkbox list and
returns the chosen subcommand names in menu order.
"""

from __future__ import annotations

from typing import Any

from disk_space_optimizer.exceptions import EnvironmentError

MENU_ENTRIES: tuple[tuple[str, str], ...] = (
    ("remove-package", "Remove unnecessary packages"),
    ("clean-package-cache", "Clean package cache"),
    ("uninstall-unused-apps", "Uninstall unused applications"),
    ("remove-old-kernels", "Remove old kernel versions"),
    ("clean-up-log-files", "Clean up log files"),
)


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _build_choice_label(index: int, label: str) -> str:
    """Label shown in the checkbox list, e.g. ``"1. Clean package cache"``."""
    return f"{index + 1}. {label}"


def prompt_operations() -> list[str]:
    """Ask which operations to run.

    Returns
    -------
    list[str]
        Subcommand names in menu order.  Empty when the user selects
        nothing or cancels with Ctrl+C / Esc.
    """
    questionary = _import_questionary()

    choices = [
        questionary.Choice(title=_build_choice_label(i, label), value=command)
        for i, (command, label) in enumerate(MENU_ENTRIES)
    ]
    selected: list[str] | None = questionary.checkbox(
        "Select operations to run (space to toggle, enter to confirm):",
        choices=choices,
    ).ask()  # Returns None on Ctrl+C / Esc

    if not selected:
        return []
    order = [command for command, _ in MENU_ENTRIES]
    return sorted(selected, key=order.index)
