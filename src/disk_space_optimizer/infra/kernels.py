"""Infrastructure: running-kernel detection and removable-kernel listing.

Rules
-----
* The running kernel is NEVER offered for removal.
* Installed kernels come from the package manager backend; this module
  only filters and orders them.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import re
from collections.abc import Callable, Iterable

from disk_space_optimizer.core.models import CandidateItem
from disk_space_optimizer.core.protocols import PackageManager
from disk_space_optimizer.exceptions import EnumerationError

_NUMBER = re.compile(r"\d+")


def running_kernel() -> str:
    """Return the running kernel release (``uname -r``)."""
    release = platform.release()
    if not release:
        raise EnumerationError("Cannot determine the running kernel release.")
    return release


def version_key(version: str) -> tuple[int, ...]:
    """Sort key comparing the numeric components of a kernel version.

    ``"5.15.0-82-generic"`` sorts as ``(5, 15, 0, 82)``.
    """
    return tuple(int(part) for part in _NUMBER.findall(version))


def sort_kernels(items: Iterable[CandidateItem]) -> list[CandidateItem]:
    """Return kernels oldest first."""
    return sorted(items, key=lambda item: (version_key(item.name), item.name))


class KernelInventory:
    """Concrete :class:`~disk_space_optimizer.core.protocols.KernelSource`.

    Parameters
    ----------
    packages:
        Backend that lists installed kernels.
    running:
        Callable returning the running release; injectable for tests.
    """

    def __init__(
        self,
        packages: PackageManager,
        *,
        running: Callable[[], str] = running_kernel,
    ) -> None:
        self._packages = packages
        self._running = running

    def removable_kernels(self) -> list[CandidateItem]:
        """Installed kernels, oldest first, with the running one removed."""
        current = self._running()
        installed = self._packages.list_kernels()
        return sort_kernels(item for item in installed if item.name != current)
