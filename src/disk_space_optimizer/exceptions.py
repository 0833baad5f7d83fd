"""Custom exception hierarchy for disk-space-optimizer.

All exceptions that cross layer boundaries must inherit from
:class:`DiskSpaceOptimizerError`.  Raw ``OSError`` / ``subprocess``
exceptions must NEVER propagate beyond the infrastructure layer — they
must be caught and re-raised as a typed subclass defined here.

Hierarchy
---------
DiskSpaceOptimizerError
├── InputUnavailableError
├── EnumerationError
├── ExecutionError
│   ├── CommandNotFoundError
│   └── CommandFailedError
├── ConfigurationError
│   └── PackageManagerNotFoundError
└── EnvironmentError
"""

from __future__ import annotations

from collections.abc import Sequence


class DiskSpaceOptimizerError(Exception):
    """Base exception for all disk-space-optimizer errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Interactive input -----------------------------------------------------

class InputUnavailableError(DiskSpaceOptimizerError):
    """Raised when standard input is closed or not interactive.

    Callers must treat this as a decline, never as a confirmation.
    """


# --- Candidate enumeration -------------------------------------------------

class EnumerationError(DiskSpaceOptimizerError):
    """Raised when candidates (kernels, packages, log files) cannot be listed."""


# --- Command execution -----------------------------------------------------

class ExecutionError(DiskSpaceOptimizerError):
    """Base class for failures while running an external program."""

    def __init__(
        self,
        message: str,
        *,
        program: str,
        args: Sequence[str] = (),
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.program: str = program
        self.args_list: tuple[str, ...] = tuple(args)


class CommandNotFoundError(ExecutionError):
    """Raised when the program to execute cannot be found on PATH."""


class CommandFailedError(ExecutionError):
    """Raised when the program ran but exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        program: str,
        args: Sequence[str] = (),
        returncode: int,
        stdout: str = "",
        stderr: str = "",
        hint: str | None = None,
    ) -> None:
        super().__init__(message, program=program, args=args, hint=hint)
        self.returncode: int = returncode
        self.stdout: str = stdout
        self.stderr: str = stderr


# --- Configuration / environment -------------------------------------------

class ConfigurationError(DiskSpaceOptimizerError):
    """Raised when settings are invalid or the config file is unreadable."""


class PackageManagerNotFoundError(ConfigurationError):
    """Raised when no supported package manager can be located."""


class EnvironmentError(DiskSpaceOptimizerError):
    """Raised when an optional runtime dependency is not available."""
