"""disk-space-optimizer — interactive disk space clean-up for Linux.

Wraps the system package manager, journalctl and plain file removal
behind a confirmation gate so nothing destructive runs unprompted.
"""

from disk_space_optimizer.version import __version__

__all__: list[str] = ["__version__"]
