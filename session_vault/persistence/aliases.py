"""Session alias persistence store.

On-disk format::

    {
      "version": "1.0",
      "aliases": {
        "<name>": {"sessionPath": ..., "createdAt": ..., "updatedAt": ..., "title": ...}
      },
      "metadata": {"totalCount": 1, "lastUpdated": "..."}
    }

``metadata`` is derived and rewritten on every save.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..log import logger
from ._base import AtomicJsonStore

ALIAS_VERSION = "1.0"
MAX_ALIAS_LENGTH = 128
RESERVED_ALIASES: frozenset[str] = frozenset(
    {"list", "help", "remove", "delete", "create", "set"}
)

_ALIAS_RE = re.compile(r"[a-zA-Z0-9_-]+")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_entry(info: Any) -> bool:
    return isinstance(info, dict) and isinstance(info.get("sessionPath"), str)


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _parse_timestamp(raw: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, tolerating a Z suffix."""
    if not raw or not isinstance(raw, str):
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_alias_name(name: Any, label: str = "Alias name") -> str | None:
    """Return an error message if *name* is not a usable alias, else ``None``."""
    if not name or not isinstance(name, str):
        return f"{label} cannot be empty"
    if len(name) > MAX_ALIAS_LENGTH:
        return f"{label} cannot exceed {MAX_ALIAS_LENGTH} characters"
    if not _ALIAS_RE.fullmatch(name):
        return f"{label} must contain only letters, numbers, dashes, and underscores"
    if name.lower() in RESERVED_ALIASES:
        return f"'{name}' is a reserved alias name"
    return None


# ---------------------------------------------------------------------------
# Records and results
# ---------------------------------------------------------------------------


@dataclass
class AliasRecord:
    """A single alias target as stored under its name."""

    session_path: str
    created_at: str = ""
    updated_at: str = ""
    title: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AliasRecord:
        return cls(
            session_path=data.get("sessionPath", ""),
            created_at=_text(data.get("createdAt")) or "",
            updated_at=_text(data.get("updatedAt")) or "",
            title=_text(data.get("title")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionPath": self.session_path,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "title": self.title,
        }


@dataclass
class AliasEntry:
    """An alias name together with its record, as returned by listings."""

    name: str
    session_path: str
    created_at: str
    updated_at: str
    title: str | None

    @classmethod
    def from_item(cls, name: str, info: dict[str, Any]) -> AliasEntry:
        return cls(
            name=name,
            session_path=info.get("sessionPath", ""),
            created_at=_text(info.get("createdAt")) or "",
            updated_at=_text(info.get("updatedAt")) or "",
            title=_text(info.get("title")),
        )

    def sort_key(self) -> float:
        stamp = _parse_timestamp(self.updated_at) or _parse_timestamp(self.created_at)
        return (stamp or _EPOCH).timestamp()


@dataclass
class AliasResult:
    """Outcome of a mutating alias operation.

    ``session_path`` is the target path (for ``delete``, the path the
    removed alias pointed at).
    """

    success: bool
    error: str | None = None
    alias: str | None = None
    session_path: str | None = None
    title: str | None = None
    is_new: bool = False
    old_alias: str | None = None
    rolled_back: bool = False


@dataclass
class CleanupResult:
    """Outcome of :meth:`AliasStore.cleanup_orphans`."""

    success: bool
    total_checked: int = 0
    removed: int = 0
    removed_aliases: list[dict[str, str]] = field(default_factory=list)
    error: str | None = None


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class AliasStore(AtomicJsonStore):
    """Named aliases pointing at session files.

    Every operation reloads the file, applies its change in memory and
    saves once, so separate instances over the same path see each other's
    writes.  Validation failures and I/O failures come back as
    :class:`AliasResult` values; nothing here raises.
    """

    collection_key = "aliases"

    def __init__(self, path: Path) -> None:
        super().__init__(path)

    # -- document shape -------------------------------------------------------

    def _default(self) -> dict[str, Any]:
        return {
            "version": ALIAS_VERSION,
            "aliases": {},
            "metadata": {"totalCount": 0, "lastUpdated": _now()},
        }

    def _backfill(self, data: dict[str, Any]) -> dict[str, Any]:
        aliases = data["aliases"]
        for name in [n for n, info in aliases.items() if not _is_entry(info)]:
            logger.warning("dropping malformed alias entry %r in %s", name, self.path)
            del aliases[name]
        if not data.get("version"):
            data["version"] = ALIAS_VERSION
        if not isinstance(data.get("metadata"), dict):
            data["metadata"] = {
                "totalCount": len(aliases),
                "lastUpdated": _now(),
            }
        return data

    def load(self) -> dict[str, Any]:
        """Load the alias document (always well-formed)."""
        return self.load_document()

    def save(self, data: dict[str, Any]) -> bool:
        """Recompute ``metadata`` and persist *data*."""
        if not isinstance(data, dict) or not isinstance(data.get("aliases"), dict):
            self._note(f"refusing to save {self.path}: 'aliases' is not a mapping")
            return False
        data["metadata"] = {
            "totalCount": len(data["aliases"]),
            "lastUpdated": _now(),
        }
        return self.save_document(data)

    # -- queries --------------------------------------------------------------

    def resolve(self, name: str) -> AliasRecord | None:
        """Return the record for *name*, or ``None`` if unknown or malformed."""
        if not name or not isinstance(name, str) or not _ALIAS_RE.fullmatch(name):
            return None
        info = self.load()["aliases"].get(name)
        if info is None:
            return None
        return AliasRecord.from_dict(info)

    def resolve_session(self, alias_or_id: str) -> str:
        """Return the session path behind an alias, or the argument itself."""
        record = self.resolve(alias_or_id)
        if record is not None:
            return record.session_path
        return alias_or_id

    def list(self, search: str | None = None, limit: int | None = None) -> list[AliasEntry]:
        """Return aliases, most recently updated first.

        *search* matches case-insensitively against name or title; a
        positive *limit* truncates the result.
        """
        entries = [
            AliasEntry.from_item(name, info)
            for name, info in self.load()["aliases"].items()
        ]
        entries.sort(key=AliasEntry.sort_key, reverse=True)

        if search:
            needle = search.lower()
            entries = [
                e
                for e in entries
                if needle in e.name.lower()
                or (isinstance(e.title, str) and needle in e.title.lower())
            ]

        if isinstance(limit, (int, float)) and not isinstance(limit, bool) and limit > 0:
            if not math.isinf(limit):
                entries = entries[: int(limit)]
        return entries

    def aliases_for_session(self, session_path: str) -> list[AliasEntry]:
        """Return every alias whose target is exactly *session_path*."""
        return [
            AliasEntry.from_item(name, info)
            for name, info in self.load()["aliases"].items()
            if info.get("sessionPath") == session_path
        ]

    # -- mutations ------------------------------------------------------------

    def set(self, name: str, session_path: str, title: str | None = None) -> AliasResult:
        """Create or update alias *name* pointing at *session_path*."""
        error = validate_alias_name(name)
        if error is None and (
            not isinstance(session_path, str) or not session_path.strip()
        ):
            error = "Session path cannot be empty"
        if error is None and title is not None and not isinstance(title, str):
            error = "Title must be a string or None"
        if error:
            return AliasResult(success=False, error=error)

        data = self.load()
        existing = data["aliases"].get(name)
        now = _now()
        record = AliasRecord(
            session_path=session_path,
            created_at=(existing.get("createdAt") or now) if existing else now,
            updated_at=now,
            title=title or None,
        )
        data["aliases"][name] = record.to_dict()

        if not self.save(data):
            return AliasResult(success=False, error="Failed to save alias")
        return AliasResult(
            success=True,
            is_new=existing is None,
            alias=name,
            session_path=session_path,
            title=record.title,
        )

    def delete(self, name: str) -> AliasResult:
        """Remove alias *name*."""
        data = self.load()
        if name not in data["aliases"]:
            return AliasResult(success=False, error=f"Alias '{name}' not found")

        removed = data["aliases"].pop(name)
        if not self.save(data):
            return AliasResult(success=False, error="Failed to delete alias")
        return AliasResult(
            success=True,
            alias=name,
            session_path=removed.get("sessionPath"),
        )

    def rename(self, old_name: str, new_name: str) -> AliasResult:
        """Move alias *old_name* to *new_name*, keeping its creation time.

        If the save fails the in-memory change is undone and the original
        document is written back (best-effort), so exactly one of the two
        names remains resolvable.
        """
        data = self.load()
        aliases = data["aliases"]
        if old_name not in aliases:
            return AliasResult(success=False, error=f"Alias '{old_name}' not found")

        error = validate_alias_name(new_name, label="New alias name")
        if error:
            return AliasResult(success=False, error=error)
        if new_name in aliases:
            return AliasResult(
                success=False, error=f"Alias '{new_name}' already exists"
            )

        original = aliases.pop(old_name)
        renamed = dict(original)
        renamed["updatedAt"] = _now()
        aliases[new_name] = renamed

        if self.save(data):
            return AliasResult(
                success=True,
                alias=new_name,
                old_alias=old_name,
                session_path=renamed.get("sessionPath"),
            )

        aliases.pop(new_name, None)
        aliases[old_name] = original
        if not self.save(data):
            logger.error("could not persist rollback of alias rename %s -> %s", old_name, new_name)
        return AliasResult(
            success=False,
            error="Failed to save renamed alias; rolled back to original",
            rolled_back=True,
        )

    def update_title(self, name: str, title: str | None) -> AliasResult:
        """Set or clear (``None`` or ``""``) the title of alias *name*."""
        if title is not None and not isinstance(title, str):
            return AliasResult(success=False, error="Title must be a string or None")

        data = self.load()
        info = data["aliases"].get(name)
        if info is None:
            return AliasResult(success=False, error=f"Alias '{name}' not found")

        info["title"] = title or None
        info["updatedAt"] = _now()
        if not self.save(data):
            return AliasResult(success=False, error="Failed to update alias title")
        return AliasResult(
            success=True,
            alias=name,
            session_path=info.get("sessionPath"),
            title=info["title"],
        )

    def cleanup_orphans(self, exists: Callable[[str], Any]) -> CleanupResult:
        """Remove aliases whose session fails the *exists* check.

        The file is written once after all removals; nothing is written
        when no alias was removed.
        """
        if not callable(exists):
            return CleanupResult(success=False, error="exists must be callable")

        data = self.load()
        aliases = data["aliases"]
        total = len(aliases)
        removed: list[dict[str, str]] = []
        for name, info in list(aliases.items()):
            session_path = info.get("sessionPath", "")
            if not exists(session_path):
                removed.append({"name": name, "sessionPath": session_path})
                del aliases[name]

        if removed and not self.save(data):
            logger.warning("failed to save aliases after orphan cleanup")
            return CleanupResult(
                success=False,
                total_checked=total,
                removed=len(removed),
                removed_aliases=removed,
                error="Failed to save after cleanup",
            )
        return CleanupResult(
            success=True,
            total_checked=total,
            removed=len(removed),
            removed_aliases=removed,
        )
