"""Shared test fixtures for the session-vault test suite."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from session_vault.features import SessionRepository
from session_vault.persistence import AliasStore


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the vault home at a temp dir so nothing touches the real one."""
    home = tmp_path / "vault-home"
    monkeypatch.setenv("SESSION_VAULT_HOME", str(home))
    return home


@pytest.fixture
def alias_path(tmp_path: Path) -> Path:
    return tmp_path / "session-aliases.json"


@pytest.fixture
def alias_store(alias_path: Path) -> AliasStore:
    return AliasStore(alias_path)


@pytest.fixture
def sessions_dir(tmp_path: Path) -> Path:
    path = tmp_path / "sessions"
    path.mkdir()
    return path


@pytest.fixture
def repo(sessions_dir: Path) -> SessionRepository:
    return SessionRepository(sessions_dir)


@pytest.fixture
def make_session(sessions_dir: Path):
    """Create a session file with a controlled modification time.

    ``make_session(name, content="", mtime=None)`` returns the file path.
    *mtime* is an offset in seconds from a fixed base so ordering tests
    don't depend on the wall clock.
    """
    base = 1_767_000_000

    def _make(name: str, content: str = "", mtime: int | None = None) -> Path:
        path = sessions_dir / name
        path.write_text(content, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (base + mtime, base + mtime))
        return path

    return _make


SAMPLE_SESSION = """\
# Importer rewrite
**Date:** 2026-02-01
**Started:** 09:30
**Last Updated:** 11:05

### Completed
- [x] Parse headers
- [x] Handle BOM

### In Progress
- [ ] Streaming mode

### Notes for Next Session
Check the large-file fixture.

### Context to Load
```
src/importer.py
tests/test_importer.py
```
"""


@pytest.fixture
def sample_session_text() -> str:
    return SAMPLE_SESSION
