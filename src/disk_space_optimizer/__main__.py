"""Allow ``python -m disk_space_optimizer`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m disk_space_optimizer`` behaves identically to the
``disk-space-optimizer`` console script.
"""

from __future__ import annotations

from disk_space_optimizer.cli.app import cli

if __name__ == "__main__":
    cli()
