"""Session files: filename grammar, content parsing and the repository."""

from .session_content import (
    SessionMetadata,
    SessionStats,
    parse_metadata,
    stats_from_content,
    stats_from_path,
)
from .session_filename import (
    NO_ID,
    SESSION_EXTENSION,
    SessionFileDescriptor,
    is_session_filename,
    parse_session_filename,
    session_filename,
)
from .session_repository import (
    SessionPage,
    SessionRecord,
    SessionRepository,
    format_size,
)

__all__ = [
    "NO_ID",
    "SESSION_EXTENSION",
    "SessionFileDescriptor",
    "SessionMetadata",
    "SessionPage",
    "SessionRecord",
    "SessionRepository",
    "SessionStats",
    "format_size",
    "is_session_filename",
    "parse_metadata",
    "parse_session_filename",
    "session_filename",
    "stats_from_content",
    "stats_from_path",
]
