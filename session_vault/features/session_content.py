"""Metadata and statistics extracted from session file text.

Session files are loosely structured markdown::

    # Working on the importer
    **Date:** 2026-02-01
    **Started:** 09:30
    **Last Updated:** 11:05

    ### Completed
    - [x] parse headers

    ### In Progress
    - [ ] streaming mode

    ### Notes for Next Session
    Check the large-file fixture.

    ### Context to Load
    ```
    src/importer.py
    ```

Every marker is optional.  Missing sections produce empty defaults;
nothing in this module raises on odd input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from ..log import logger

_TITLE_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_DATE_RE = re.compile(r"\*\*Date:\*\*\s*(\d{4}-\d{2}-\d{2})", re.ASCII)
_STARTED_RE = re.compile(r"\*\*Started:\*\*\s*([\d:]+)", re.ASCII)
_UPDATED_RE = re.compile(r"\*\*Last Updated:\*\*\s*([\d:]+)", re.ASCII)

# A section body runs until the next ### heading, a blank line, or the end.
_SECTION_END = r"(?=###|\n\n|\Z)"
_COMPLETED_RE = re.compile(r"### Completed\s*\n(.*?)" + _SECTION_END, re.DOTALL)
_PROGRESS_RE = re.compile(r"### In Progress\s*\n(.*?)" + _SECTION_END, re.DOTALL)
_NOTES_RE = re.compile(
    r"### Notes for Next Session\s*\n(.*?)" + _SECTION_END, re.DOTALL
)
_CONTEXT_RE = re.compile(r"### Context to Load\s*\n```\n(.*?)```", re.DOTALL)

_DONE_ITEM_RE = re.compile(r"- \[x\]\s*(.+)")
_OPEN_ITEM_RE = re.compile(r"- \[ \]\s*(.+)")


@dataclass
class SessionMetadata:
    """Structured view of a session file's markdown."""

    title: str | None = None
    date: str | None = None
    started: str | None = None
    last_updated: str | None = None
    completed: list[str] = field(default_factory=list)
    in_progress: list[str] = field(default_factory=list)
    notes: str = ""
    context: str = ""


@dataclass
class SessionStats:
    """Counts derived from a session file's markdown."""

    total_items: int = 0
    completed_items: int = 0
    in_progress_items: int = 0
    line_count: int = 0
    has_notes: bool = False
    has_context: bool = False


def _first_group(pattern: re.Pattern[str], content: str) -> str | None:
    match = pattern.search(content)
    return match.group(1) if match else None


def _checklist(section: re.Pattern[str], item: re.Pattern[str], content: str) -> list[str]:
    body = _first_group(section, content)
    if body is None:
        return []
    return [m.group(1).strip() for m in item.finditer(body)]


def parse_metadata(content: str | None) -> SessionMetadata:
    """Extract title, timestamps, checklists, notes and context from *content*."""
    metadata = SessionMetadata()
    if not content:
        return metadata

    title = _first_group(_TITLE_RE, content)
    if title:
        metadata.title = title.strip()
    metadata.date = _first_group(_DATE_RE, content)
    metadata.started = _first_group(_STARTED_RE, content)
    metadata.last_updated = _first_group(_UPDATED_RE, content)
    metadata.completed = _checklist(_COMPLETED_RE, _DONE_ITEM_RE, content)
    metadata.in_progress = _checklist(_PROGRESS_RE, _OPEN_ITEM_RE, content)
    metadata.notes = (_first_group(_NOTES_RE, content) or "").strip()
    metadata.context = (_first_group(_CONTEXT_RE, content) or "").strip()
    return metadata


def stats_from_content(content: str | None) -> SessionStats:
    """Compute :class:`SessionStats` for already-loaded session text."""
    metadata = parse_metadata(content)
    return SessionStats(
        total_items=len(metadata.completed) + len(metadata.in_progress),
        completed_items=len(metadata.completed),
        in_progress_items=len(metadata.in_progress),
        line_count=len(content.split("\n")) if content else 0,
        has_notes=bool(metadata.notes),
        has_context=bool(metadata.context),
    )


def stats_from_path(path: Path | str) -> SessionStats:
    """Read the session file at *path* and compute its statistics.

    An unreadable or missing file gives all-zero statistics.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("could not read session %s: %s", path, exc)
        content = None
    return stats_from_content(content)
