"""Session file repository.

Reads the session directory on every call; nothing is cached.  Only regular
files whose names parse with :func:`parse_session_filename` are sessions.
All file operations report failure through their return value and the
package logger instead of raising.
"""

from __future__ import annotations

import math
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ..log import logger
from ..platform import ensure_dir
from .session_content import (
    SessionMetadata,
    SessionStats,
    parse_metadata,
    stats_from_content,
)
from .session_filename import (
    NO_ID,
    SESSION_EXTENSION,
    SessionFileDescriptor,
    parse_session_filename,
)

DEFAULT_LIMIT = 50
UNTITLED = "Untitled Session"


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class SessionRecord:
    """A session file on disk.

    ``content``, ``metadata`` and ``stats`` stay ``None`` unless they were
    requested (see :meth:`SessionRepository.find_by_id`).
    """

    filename: str
    short_id: str
    date: str
    datetime: datetime
    session_path: Path
    size: int
    modified_time: datetime
    created_time: datetime
    has_content: bool
    content: str | None = None
    metadata: SessionMetadata | None = None
    stats: SessionStats | None = None


@dataclass
class SessionPage:
    """One page of :meth:`SessionRepository.list` results."""

    sessions: list[SessionRecord] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = DEFAULT_LIMIT
    has_more: bool = False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _coerce_count(value: Any, default: int, minimum: int) -> int:
    """Turn a user-supplied offset/limit into an int no smaller than *minimum*.

    Non-numeric and NaN values give *default*; fractions are floored and
    infinities clamp to the representable range.
    """
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    if math.isinf(number):
        return sys.maxsize if number > 0 else minimum
    return max(minimum, math.floor(number))


def _created_time(st: os.stat_result) -> datetime:
    # st_birthtime only exists on macOS/BSD and recent Windows builds.
    birth = getattr(st, "st_birthtime", None)
    return datetime.fromtimestamp(birth if birth else st.st_ctime)


def format_size(size: int) -> str:
    """Human-readable byte count: ``512 B``, ``1.2 KB``, ``3.4 MB``."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class SessionRepository:
    """Enumerate, look up, read and write session files in one directory.

    Usage::

        repo = SessionRepository(Path("~/.session-vault/sessions").expanduser())
        page = repo.list(limit=10)
        record = repo.find_by_id("a1b2c3d4", include_content=True)
    """

    def __init__(self, sessions_dir: Path, extension: str = SESSION_EXTENSION) -> None:
        self.sessions_dir = Path(sessions_dir)
        self.extension = extension

    # -- enumeration ----------------------------------------------------------

    def _descriptors(self) -> list[SessionFileDescriptor]:
        """Parse every session filename in the directory (sorted by name)."""
        try:
            with os.scandir(self.sessions_dir) as it:
                names = []
                for entry in it:
                    try:
                        if entry.is_file():
                            names.append(entry.name)
                    except OSError:
                        continue
        except FileNotFoundError:
            return []
        except OSError as exc:
            logger.warning("could not read sessions directory %s: %s", self.sessions_dir, exc)
            return []

        descriptors = []
        for name in sorted(names):
            descriptor = parse_session_filename(name, self.extension)
            if descriptor is not None:
                descriptors.append(descriptor)
        return descriptors

    def _record(self, descriptor: SessionFileDescriptor) -> SessionRecord | None:
        """Stat the file behind *descriptor*; ``None`` if it has vanished."""
        path = self.sessions_dir / descriptor.filename
        try:
            st = path.stat()
        except OSError:
            return None
        return SessionRecord(
            filename=descriptor.filename,
            short_id=descriptor.short_id,
            date=descriptor.date,
            datetime=descriptor.datetime,
            session_path=path,
            size=st.st_size,
            modified_time=datetime.fromtimestamp(st.st_mtime),
            created_time=_created_time(st),
            has_content=st.st_size > 0,
        )

    def list(
        self,
        limit: Any = DEFAULT_LIMIT,
        offset: Any = 0,
        date: str | None = None,
        search: str | None = None,
    ) -> SessionPage:
        """Return one page of sessions, newest modification first.

        *date* keeps sessions whose filename date equals it; *search* keeps
        sessions whose short id contains it.  *offset* and *limit* are
        coerced to safe integers (``limit`` at least 1).
        """
        offset = _coerce_count(offset, 0, 0)
        limit = _coerce_count(limit, DEFAULT_LIMIT, 1)

        records = []
        for descriptor in self._descriptors():
            record = self._record(descriptor)
            if record is not None:
                records.append(record)
        records.sort(key=lambda r: r.modified_time, reverse=True)

        if date:
            records = [r for r in records if r.date == date]
        if search:
            records = [r for r in records if search in r.short_id]

        total = len(records)
        return SessionPage(
            sessions=records[offset : offset + limit],
            total=total,
            offset=offset,
            limit=limit,
            has_more=offset + limit < total,
        )

    def find_by_id(self, session_id: str, include_content: bool = False) -> SessionRecord | None:
        """Look a session up by short-id prefix or by filename.

        Accepts a short id prefix (``a1b2``), a full filename with or
        without the extension, or ``YYYY-MM-DD`` for legacy files that have
        no short id.
        """
        if not isinstance(session_id, str):
            return None

        for descriptor in self._descriptors():
            filename = descriptor.filename
            legacy = descriptor.short_id == NO_ID
            matches = (
                (bool(session_id) and not legacy and descriptor.short_id.startswith(session_id))
                or filename in (session_id, f"{session_id}{self.extension}")
                or (legacy and filename == f"{session_id}-session{self.extension}")
            )
            if not matches:
                continue

            record = self._record(descriptor)
            if record is None:
                return None
            if include_content:
                record.content = self.read(record.session_path)
                record.metadata = parse_metadata(record.content)
                record.stats = stats_from_content(record.content or "")
            return record

        return None

    # -- file operations ------------------------------------------------------

    def path_for(self, filename: str) -> Path:
        """Return the full path of *filename* inside the sessions directory."""
        return self.sessions_dir / filename

    def read(self, path: Path | str) -> str | None:
        """Return the text of the session at *path*, or ``None``."""
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError, TypeError) as exc:
            logger.debug("could not read session %s: %s", path, exc)
            return None

    def write(self, path: Path | str, content: str) -> bool:
        """Replace the session's content with *content*."""
        try:
            path = Path(path)
            ensure_dir(path.parent)
            path.write_text(content, encoding="utf-8")
        except (OSError, TypeError) as exc:
            logger.warning("error writing session %s: %s", path, exc)
            return False
        return True

    def append(self, path: Path | str, content: str) -> bool:
        """Append *content* to the session, creating it if needed."""
        try:
            path = Path(path)
            ensure_dir(path.parent)
            with open(path, "a", encoding="utf-8") as fh:
                fh.write(content)
        except (OSError, TypeError) as exc:
            logger.warning("error appending to session %s: %s", path, exc)
            return False
        return True

    def delete(self, path: Path | str) -> bool:
        """Delete the session file; ``False`` if it did not exist."""
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        except (OSError, TypeError) as exc:
            logger.warning("error deleting session %s: %s", path, exc)
            return False
        return True

    def exists(self, path: Path | str) -> bool:
        """True if *path* is an existing regular file."""
        try:
            return Path(path).is_file()
        except (OSError, ValueError, TypeError):
            return False

    # -- presentation helpers -------------------------------------------------

    def title(self, path: Path | str) -> str:
        """Return the session's first heading, or ``"Untitled Session"``."""
        return parse_metadata(self.read(path)).title or UNTITLED

    def size_label(self, path: Path | str) -> str:
        """Return the session's size in human-readable form."""
        try:
            size = Path(path).stat().st_size
        except (OSError, TypeError):
            return "0 B"
        return format_size(size)
