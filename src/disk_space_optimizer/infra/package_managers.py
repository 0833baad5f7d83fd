"""Package manager backends and PATH-based detection.

Each backend satisfies
:class:`~disk_space_optimizer.core.protocols.PackageManager`
structurally.  Query commands run through the injected executor without
privileges; removal and cache commands are only *built* here and run by
the dispatcher after confirmation.

Rules
-----
* Execution errors raised while querying are re-raised as
  :class:`~disk_space_optimizer.exceptions.EnumerationError`.
* Detection via :func:`shutil.which` only.
* No ``print()``.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Callable, Iterable

from disk_space_optimizer.core.models import CandidateItem, CommandOutput
from disk_space_optimizer.core.protocols import CommandRunner
from disk_space_optimizer.exceptions import (
    CommandFailedError,
    EnumerationError,
    ExecutionError,
    PackageManagerNotFoundError,
)


def _unique_lines(text: str) -> list[str]:
    """Non-empty stripped lines of *text*, first occurrence wins."""
    return list(dict.fromkeys(line.strip() for line in text.splitlines() if line.strip()))


class _Backend:
    """Shared query plumbing for the concrete backends."""

    name: str = ""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def _query(self, program: str, args: list[str], what: str) -> CommandOutput:
        try:
            return self._runner.run(program, args)
        except ExecutionError as exc:
            raise EnumerationError(
                f"Failed to list {what}: {exc}",
                hint=exc.hint,
            ) from exc


# ---------------------------------------------------------------------------
# dnf (Fedora, RHEL and derivatives)
# ---------------------------------------------------------------------------

class DnfPackageManager(_Backend):
    name = "dnf"

    _KERNEL_PACKAGES: tuple[str, ...] = ("kernel-core", "kernel")
    _KERNEL_QUERY_FORMAT = "%{VERSION}-%{RELEASE}.%{ARCH}\\n"

    def remove_command(self, item: CandidateItem) -> list[str]:
        return ["dnf", "remove", "-y", item.argument]

    def clean_cache_command(self) -> list[str]:
        return ["dnf", "clean", "all"]

    def list_installed(self) -> list[CandidateItem]:
        """Parse ``dnf list --installed`` rows of the form ``name.arch version repo``."""
        output = self._query("dnf", ["list", "--installed"], "installed packages")
        names: list[str] = []
        for line in output.stdout.splitlines():
            # Wrapped rows continue on an indented line.
            if not line or line[0].isspace():
                continue
            parts = line.split()
            if not parts or "." not in parts[0]:
                continue
            name = parts[0].rsplit(".", 1)[0]
            if name not in names:
                names.append(name)
        return [CandidateItem(name) for name in sorted(names)]

    def list_unused(self) -> list[CandidateItem]:
        output = self._query(
            "dnf",
            ["repoquery", "--unneeded", "--queryformat", "%{name}\\n"],
            "unneeded packages",
        )
        return [CandidateItem(name) for name in _unique_lines(output.stdout)]

    def list_kernels(self) -> list[CandidateItem]:
        """Query ``kernel-core`` first, then the older single ``kernel`` package."""
        last_error: ExecutionError | None = None
        for package in self._KERNEL_PACKAGES:
            try:
                output = self._runner.run(
                    "rpm",
                    ["-q", package, "--queryformat", self._KERNEL_QUERY_FORMAT],
                )
            except CommandFailedError as exc:
                # rpm exits 1 with "package X is not installed".
                last_error = exc
                continue
            except ExecutionError as exc:
                raise EnumerationError(f"Failed to list installed kernels: {exc}") from exc
            return [
                CandidateItem(version, target=f"{package}-{version}")
                for version in _unique_lines(output.stdout)
            ]
        raise EnumerationError(
            f"Failed to list installed kernels: {last_error}",
            hint="Is this an RPM-based system?",
        )


# ---------------------------------------------------------------------------
# apt (Debian, Ubuntu and derivatives)
# ---------------------------------------------------------------------------

class AptPackageManager(_Backend):
    name = "apt"

    _REMOVE_LINE = re.compile(r"^Remv\s+(\S+)")
    _KERNEL_PREFIX = "linux-image-"

    def remove_command(self, item: CandidateItem) -> list[str]:
        return ["apt-get", "remove", "-y", item.argument]

    def clean_cache_command(self) -> list[str]:
        return ["apt-get", "clean"]

    def list_installed(self) -> list[CandidateItem]:
        output = self._query(
            "dpkg-query",
            ["-W", "-f", "${Package} ${Status}\\n"],
            "installed packages",
        )
        names: list[str] = []
        for line in output.stdout.splitlines():
            package, _, status = line.strip().partition(" ")
            if package and status == "install ok installed" and package not in names:
                names.append(package)
        return [CandidateItem(name) for name in sorted(names)]

    def list_unused(self) -> list[CandidateItem]:
        """Parse the simulated ``autoremove`` transaction."""
        output = self._query("apt-get", ["--dry-run", "autoremove"], "unneeded packages")
        names: list[str] = []
        for line in output.stdout.splitlines():
            match = self._REMOVE_LINE.match(line)
            if match and match.group(1) not in names:
                names.append(match.group(1))
        return [CandidateItem(name) for name in names]

    def list_kernels(self) -> list[CandidateItem]:
        try:
            output = self._runner.run(
                "dpkg-query",
                ["-W", "-f", "${Package} ${Status}\\n", f"{self._KERNEL_PREFIX}[0-9]*"],
            )
        except CommandFailedError as exc:
            if "no packages found" in exc.stderr.lower():
                return []
            raise EnumerationError(f"Failed to list installed kernels: {exc}") from exc
        except ExecutionError as exc:
            raise EnumerationError(f"Failed to list installed kernels: {exc}") from exc

        items: list[CandidateItem] = []
        for line in output.stdout.splitlines():
            package, _, status = line.strip().partition(" ")
            if not package.startswith(self._KERNEL_PREFIX) or status != "install ok installed":
                continue
            version = package[len(self._KERNEL_PREFIX):]
            items.append(CandidateItem(version, target=package))
        return items


# ---------------------------------------------------------------------------
# pacman (Arch Linux and derivatives)
# ---------------------------------------------------------------------------

class PacmanPackageManager(_Backend):
    name = "pacman"

    def remove_command(self, item: CandidateItem) -> list[str]:
        return ["pacman", "-Rns", "--noconfirm", item.argument]

    def clean_cache_command(self) -> list[str]:
        return ["pacman", "-Sc", "--noconfirm"]

    def list_installed(self) -> list[CandidateItem]:
        output = self._query("pacman", ["-Qq"], "installed packages")
        return [CandidateItem(name) for name in sorted(_unique_lines(output.stdout))]

    def list_unused(self) -> list[CandidateItem]:
        """List orphaned dependencies (``pacman -Qdtq``)."""
        try:
            output = self._runner.run("pacman", ["-Qdtq"])
        except CommandFailedError as exc:
            # pacman exits 1 with no output when there are no orphans.
            if not exc.stdout.strip() and not exc.stderr.strip():
                return []
            raise EnumerationError(f"Failed to list unneeded packages: {exc}") from exc
        except ExecutionError as exc:
            raise EnumerationError(f"Failed to list unneeded packages: {exc}") from exc
        return [CandidateItem(name) for name in _unique_lines(output.stdout)]

    def list_kernels(self) -> list[CandidateItem]:
        raise EnumerationError(
            "pacman keeps a single version per kernel package.",
            hint="Remove an alternative kernel with: remove-package <name>",
        )


# ---------------------------------------------------------------------------
# Registry and detection
# ---------------------------------------------------------------------------

BACKENDS: dict[str, type[_Backend]] = {
    "dnf": DnfPackageManager,
    "apt": AptPackageManager,
    "pacman": PacmanPackageManager,
}

# Executable checked for each backend, in detection order.
_EXECUTABLES: tuple[tuple[str, str], ...] = (
    ("dnf", "dnf"),
    ("apt", "apt-get"),
    ("pacman", "pacman"),
)


def detect_package_manager(which: Callable[[str], str | None] = shutil.which) -> str | None:
    """Return the name of the first supported package manager on PATH."""
    for name, executable in _EXECUTABLES:
        if which(executable) is not None:
            return name
    return None


def supported_names() -> Iterable[str]:
    return BACKENDS.keys()


def get_package_manager(
    runner: CommandRunner,
    name: str | None = None,
    *,
    which: Callable[[str], str | None] = shutil.which,
) -> _Backend:
    """Instantiate the backend called *name*, auto-detecting when ``None``.

    Raises
    ------
    PackageManagerNotFoundError
        When *name* is unknown or nothing supported is on PATH.
    """
    resolved = name if name is not None else detect_package_manager(which)
    if resolved is None:
        raise PackageManagerNotFoundError(
            "No supported package manager found on PATH.",
            hint="Supported: " + ", ".join(supported_names())
            + ". Select one with --package-manager.",
        )
    backend = BACKENDS.get(resolved)
    if backend is None:
        raise PackageManagerNotFoundError(
            f"Unsupported package manager: {resolved!r}",
            hint="Supported: " + ", ".join(supported_names()),
        )
    return backend(runner)
