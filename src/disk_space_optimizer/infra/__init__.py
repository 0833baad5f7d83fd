"""Infrastructure layer — external system integration.

This layer wraps every interaction with the package manager, ``rpm`` /
``dpkg-query``, ``journalctl`` and the filesystem.  Every raw
``OSError`` or non-zero exit must be caught here and re-raised as a
:class:`~disk_space_optimizer.exceptions.DiskSpaceOptimizerError`
subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from disk_space_optimizer.infra.executor import SubprocessExecutor, is_root
from disk_space_optimizer.infra.kernels import KernelInventory, running_kernel
from disk_space_optimizer.infra.log_files import LogFileScanner
from disk_space_optimizer.infra.package_managers import (
    detect_package_manager,
    get_package_manager,
)

__all__: list[str] = [
    "KernelInventory",
    "LogFileScanner",
    "SubprocessExecutor",
    "detect_package_manager",
    "get_package_manager",
    "is_root",
    "running_kernel",
]
