"""Session filename grammar.

Session files are named ``YYYY-MM-DD-<short-id>-session.tmp``, or
``YYYY-MM-DD-session.tmp`` for files written before short ids existed.
The short id is 8 or more lowercase letters/digits.  The date must be a
real calendar day: ``2026-02-31`` or ``2025-02-29`` do not parse.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date as _date
from datetime import datetime
from functools import lru_cache

SESSION_EXTENSION = ".tmp"

#: Short id reported for legacy filenames that carry none.
NO_ID = "no-id"


@dataclass(frozen=True)
class SessionFileDescriptor:
    """What a session filename says about its session."""

    filename: str
    short_id: str
    date: str  # YYYY-MM-DD as written in the filename
    datetime: datetime  # local midnight of that day


@lru_cache(maxsize=8)
def _filename_pattern(extension: str) -> re.Pattern[str]:
    return re.compile(
        r"(\d{4}-\d{2}-\d{2})(?:-([a-z0-9]{8,}))?-session" + re.escape(extension),
        re.ASCII,
    )


def parse_session_filename(
    filename: str, extension: str = SESSION_EXTENSION
) -> SessionFileDescriptor | None:
    """Parse *filename*, returning ``None`` if it is not a valid session name."""
    if not isinstance(filename, str):
        return None
    match = _filename_pattern(extension).fullmatch(filename)
    if not match:
        return None

    date_str = match.group(1)
    year, month, day = (int(part) for part in date_str.split("-"))
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    try:
        # Rejects days past the end of the month (Feb 30, Apr 31, ...).
        _date(year, month, day)
    except ValueError:
        return None

    return SessionFileDescriptor(
        filename=filename,
        short_id=match.group(2) or NO_ID,
        date=date_str,
        datetime=datetime(year, month, day),
    )


def is_session_filename(filename: str, extension: str = SESSION_EXTENSION) -> bool:
    return parse_session_filename(filename, extension) is not None


def session_filename(
    day: str, short_id: str | None = None, extension: str = SESSION_EXTENSION
) -> str:
    """Build the canonical filename for a session on *day* (``YYYY-MM-DD``)."""
    if short_id and short_id != NO_ID:
        return f"{day}-{short_id}-session{extension}"
    return f"{day}-session{extension}"
