"""Persistence layer – each store owns its file path, data format, and I/O."""

from ._base import AtomicJsonStore
from .aliases import (
    AliasEntry,
    AliasRecord,
    AliasResult,
    AliasStore,
    CleanupResult,
    validate_alias_name,
)

__all__ = [
    "AliasEntry",
    "AliasRecord",
    "AliasResult",
    "AliasStore",
    "AtomicJsonStore",
    "CleanupResult",
    "validate_alias_name",
]
