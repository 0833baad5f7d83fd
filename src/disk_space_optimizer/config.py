"""Runtime settings for disk-space-optimizer.

Settings are resolved once per invocation, in layers:

1. built-in defaults;
2. the optional JSON config file
   (``$XDG_CONFIG_HOME/disk-space-optimizer/config.json``);
3. ``DSO_*`` environment variables;
4. command-line flags.

The resulting :class:`Settings` value is passed explicitly to the
dispatcher and the CLI helpers.  There is no module-level mutable state.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

from disk_space_optimizer.exceptions import ConfigurationError

SUPPORTED_PACKAGE_MANAGERS: tuple[str, ...] = ("dnf", "apt", "pacman")

DEFAULT_LOG_DIR = Path("/var/log")
DEFAULT_RETENTION_DAYS = 7
MAX_RETENTION_DAYS = 3650

ENV_PACKAGE_MANAGER = "DSO_PACKAGE_MANAGER"
ENV_LOG_DIR = "DSO_LOG_DIR"
ENV_NO_SUDO = "DSO_NO_SUDO"

_CONFIG_KEYS = frozenset({"package_manager", "log_dir", "retention_days", "use_sudo"})
_TRUTHY = frozenset({"1", "true", "yes", "on"})


class Verbosity(Enum):
    """How chatty the CLI is."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable per-invocation configuration."""

    package_manager: str | None = None
    """Backend name, or ``None`` to auto-detect from PATH."""

    log_dir: Path = DEFAULT_LOG_DIR
    retention_days: int = DEFAULT_RETENTION_DAYS
    """Default retention used when ``clean-up-log-files`` is not given ``--days``."""

    use_sudo: bool = True
    """Prefix privileged commands with ``sudo`` when not running as root."""

    dry_run: bool = False
    assume_yes: bool = False
    verbosity: Verbosity = Verbosity.NORMAL

    @property
    def quiet(self) -> bool:
        return self.verbosity is Verbosity.QUIET

    @property
    def verbose(self) -> bool:
        return self.verbosity is Verbosity.VERBOSE


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------

def default_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return the config file location, honouring ``XDG_CONFIG_HOME``."""
    env = os.environ if environ is None else environ
    base = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "disk-space-optimizer" / "config.json"


def read_config_file(path: Path) -> dict[str, Any]:
    """Read and validate the JSON config file at *path*.

    A missing file yields an empty dict.  Unknown keys and out-of-range
    values are dropped; a file that exists but cannot be parsed raises
    :class:`ConfigurationError`.
    """
    if not path.is_file():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(
            f"Cannot read config file {path}: {exc}",
            hint="Fix or remove the file, then retry.",
        ) from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a JSON object.",
        )

    out: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in _CONFIG_KEYS:
            continue
        if key == "package_manager" and isinstance(value, str):
            if value in SUPPORTED_PACKAGE_MANAGERS:
                out[key] = value
        elif key == "log_dir" and isinstance(value, str) and value:
            out[key] = Path(value).expanduser()
        elif key == "retention_days" and isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value <= MAX_RETENTION_DAYS:
                out[key] = value
        elif key == "use_sudo" and isinstance(value, bool):
            out[key] = value
    return out


# ---------------------------------------------------------------------------
# Layered resolution
# ---------------------------------------------------------------------------

def _from_environment(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    manager = environ.get(ENV_PACKAGE_MANAGER, "").strip().lower()
    if manager:
        if manager not in SUPPORTED_PACKAGE_MANAGERS:
            raise ConfigurationError(
                f"Unsupported package manager in {ENV_PACKAGE_MANAGER}: {manager!r}",
                hint="Supported: " + ", ".join(SUPPORTED_PACKAGE_MANAGERS),
            )
        out["package_manager"] = manager
    log_dir = environ.get(ENV_LOG_DIR, "").strip()
    if log_dir:
        out["log_dir"] = Path(log_dir).expanduser()
    if environ.get(ENV_NO_SUDO, "").strip().lower() in _TRUTHY:
        out["use_sudo"] = False
    return out


def load_settings(
    *,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> Settings:
    """Resolve :class:`Settings` from file, environment and *overrides*.

    Parameters
    ----------
    config_path:
        Explicit config file.  Defaults to :func:`default_config_path`.
    environ:
        Environment mapping.  Defaults to :data:`os.environ`.
    overrides:
        Values from the command line.  ``None`` values are ignored so
        that unset flags do not mask lower layers.
    """
    env = os.environ if environ is None else environ
    path = config_path if config_path is not None else default_config_path(env)

    settings = Settings()
    settings = replace(settings, **read_config_file(path))
    settings = replace(settings, **_from_environment(env))

    explicit = {key: value for key, value in overrides.items() if value is not None}
    unknown = set(explicit) - {f for f in Settings.__dataclass_fields__}
    if unknown:
        raise ConfigurationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    if "package_manager" in explicit and explicit["package_manager"] not in SUPPORTED_PACKAGE_MANAGERS:
        raise ConfigurationError(
            f"Unsupported package manager: {explicit['package_manager']!r}",
            hint="Supported: " + ", ".join(SUPPORTED_PACKAGE_MANAGERS),
        )
    return replace(settings, **explicit)
