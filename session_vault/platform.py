"""Default data locations.

Every other module imports paths from here instead of building its own
``Path.home()`` joins.  The data home is ``~/.session-vault`` unless the
``SESSION_VAULT_HOME`` environment variable points elsewhere.
"""

from __future__ import annotations

import os
from pathlib import Path

HOME_ENV_VAR = "SESSION_VAULT_HOME"


def vault_home() -> Path:
    """Return the directory holding the alias store, sessions and preferences."""
    override = os.environ.get(HOME_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".session-vault"


def vault_file(name: str) -> Path:
    """Return ``<vault home>/<name>``."""
    return vault_home() / name


def default_sessions_dir() -> Path:
    """Return the directory session files are written to by default."""
    return vault_home() / "sessions"


def default_aliases_path() -> Path:
    """Return the default alias store file."""
    return vault_file("session-aliases.json")


def ensure_dir(path: Path) -> Path:
    """Create *path* (and parents) if missing; an existing directory is fine."""
    path.mkdir(parents=True, exist_ok=True)
    return path
