"""User preferences for session-vault.

Loads storage locations and listing defaults from
``~/.session-vault/preferences.yaml``.  Falls back to sensible defaults if
the file doesn't exist or is invalid.  Creates a default file on first
run so users can discover and edit it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .log import logger
from .platform import (
    default_aliases_path,
    default_sessions_dir,
    ensure_dir,
    vault_file,
)

PREFS_FILENAME = "preferences.yaml"

DEFAULT_PAGE_SIZE = 50
DEFAULT_SESSION_EXTENSION = ".tmp"

_DEFAULT_YAML = """\
# session-vault preferences
# Delete this file to reset to defaults.

storage:
  sessions_dir: ""               # empty = <vault home>/sessions
  aliases_path: ""               # empty = <vault home>/session-aliases.json
  session_extension: ".tmp"      # suffix of session files

listing:
  page_size: 50                  # default number of sessions per page
"""


def preferences_path() -> Path:
    """Return the preferences file location inside the vault home."""
    return vault_file(PREFS_FILENAME)


@dataclass
class Preferences:
    """Resolved storage locations and listing defaults."""

    sessions_dir: Path = field(default_factory=default_sessions_dir)
    aliases_path: Path = field(default_factory=default_aliases_path)
    session_extension: str = DEFAULT_SESSION_EXTENSION
    page_size: int = DEFAULT_PAGE_SIZE


def _as_path(value: object) -> Path | None:
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    return None


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences from YAML file.

    Falls back to defaults for any missing or invalid value.  Creates a
    default preferences file on first run.
    """
    path = path or preferences_path()
    prefs = Preferences()

    if not path.exists():
        try:
            ensure_dir(path.parent)
            path.write_text(_DEFAULT_YAML, encoding="utf-8")
        except OSError:
            logger.debug("could not create default preferences at %s", path)
        return prefs

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        logger.warning("unreadable preferences file %s, using defaults", path)
        return prefs
    if not isinstance(data, dict):
        return prefs

    storage = data.get("storage")
    if isinstance(storage, dict):
        sessions_dir = _as_path(storage.get("sessions_dir"))
        if sessions_dir is not None:
            prefs.sessions_dir = sessions_dir
        aliases_path = _as_path(storage.get("aliases_path"))
        if aliases_path is not None:
            prefs.aliases_path = aliases_path
        ext = storage.get("session_extension")
        if isinstance(ext, str) and ext.strip():
            ext = ext.strip()
            prefs.session_extension = ext if ext.startswith(".") else f".{ext}"

    listing = data.get("listing")
    if isinstance(listing, dict) and "page_size" in listing:
        try:
            page_size = int(listing["page_size"])
        except (TypeError, ValueError):
            page_size = DEFAULT_PAGE_SIZE
        prefs.page_size = max(1, page_size)

    return prefs
