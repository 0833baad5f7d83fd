"""Subprocess-backed implementation of :class:`~disk_space_optimizer.core.protocols.CommandRunner`.

This module is the **only** place that spawns destructive external
programs.  ``OSError`` and non-zero exits are caught here and re-raised
as typed :class:`~disk_space_optimizer.exceptions.ExecutionError`
subclasses — nothing raw escapes the infrastructure boundary.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence

from disk_space_optimizer.core.models import CommandOutput
from disk_space_optimizer.exceptions import CommandFailedError, CommandNotFoundError


def is_root() -> bool:
    """Return ``True`` when the process runs with effective UID 0."""
    try:
        return os.geteuid() == 0
    except AttributeError:
        # os.geteuid() is not available on Windows.
        return False


class SubprocessExecutor:
    """Concrete :class:`CommandRunner` built on :func:`subprocess.run`.

    Parameters
    ----------
    use_sudo:
        Prefix privileged commands with ``sudo`` when not already root.
    """

    def __init__(self, *, use_sudo: bool = True) -> None:
        self._use_sudo = use_sudo

    def build_argv(self, program: str, args: Sequence[str], *, privileged: bool = False) -> list[str]:
        """Return the argv that :meth:`run` would execute."""
        argv = [program, *args]
        if privileged and self._use_sudo and not is_root():
            argv.insert(0, "sudo")
        return argv

    def run(
        self,
        program: str,
        args: Sequence[str],
        *,
        privileged: bool = False,
    ) -> CommandOutput:
        """Run *program* with *args*, capturing text output.

        Raises
        ------
        CommandNotFoundError
            When the program (or ``sudo``) is not installed.
        CommandFailedError
            When the program exits non-zero.
        """
        argv = self.build_argv(program, args, privileged=privileged)
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            missing = exc.filename or argv[0]
            raise CommandNotFoundError(
                f"{missing} was not found on PATH.",
                program=program,
                args=args,
                hint=f"Install {missing} or check the configured package manager.",
            ) from exc
        except OSError as exc:
            raise CommandNotFoundError(
                f"Cannot execute {argv[0]}: {exc}",
                program=program,
                args=args,
            ) from exc

        stdout = result.stdout or ""
        stderr = result.stderr or ""
        if result.returncode != 0:
            detail = stderr.strip() or stdout.strip()
            message = f"{' '.join(argv)} exited with status {result.returncode}"
            if detail:
                message = f"{message}: {detail.splitlines()[-1]}"
            raise CommandFailedError(
                message,
                program=program,
                args=args,
                returncode=result.returncode,
                stdout=stdout,
                stderr=stderr,
            )

        return CommandOutput(
            program=program,
            args=tuple(args),
            returncode=result.returncode,
            stdout=stdout,
            stderr=stderr,
        )
