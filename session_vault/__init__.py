"""session-vault: crash-safe session aliases and a dated session file repository."""

from .features import (
    SessionFileDescriptor,
    SessionRecord,
    SessionRepository,
    parse_session_filename,
)
from .persistence import AliasRecord, AliasStore, AtomicJsonStore

__version__ = "0.1.0"

__all__ = [
    "AliasRecord",
    "AliasStore",
    "AtomicJsonStore",
    "SessionFileDescriptor",
    "SessionRecord",
    "SessionRepository",
    "parse_session_filename",
]
