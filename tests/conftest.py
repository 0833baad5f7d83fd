"""Shared pytest fixtures and configuration for the disk-space-optimizer test suite.

Guidelines
----------
* No test runs a real package manager, ``sudo`` or ``rm``.
* No test reads from the real terminal — gates get scripted readers.
* Filesystem tests work under ``tmp_path`` only, never ``/var/log``.
* Tests must not depend on the host's config file or ``DSO_*`` variables.
"""

from __future__ import annotations

import pytest

from disk_space_optimizer.config import ENV_LOG_DIR, ENV_NO_SUDO, ENV_PACKAGE_MANAGER


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    """Point the config lookup at an empty directory and clear ``DSO_*``."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path_factory.mktemp("xdg")))
    for name in (ENV_PACKAGE_MANAGER, ENV_LOG_DIR, ENV_NO_SUDO):
        monkeypatch.delenv(name, raising=False)
