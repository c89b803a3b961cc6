"""Base JSON persistence store with crash-safe writes."""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Any

from ..log import logger
from ..platform import ensure_dir


class AtomicJsonStore:
    """One JSON document on disk, replaced atomically on every save.

    ``save_document`` copies the current file to ``<name>.bak``, writes the
    new text to ``<name>.tmp`` and renames the temp file over the target
    with :func:`os.replace`.  That rename is atomic on POSIX and on
    Windows, so the target is either the old document or the new one,
    never a truncated mix.  If anything fails after the backup was taken,
    the backup is copied back over the target.

    ``load_document`` never raises: a missing, unreadable or wrongly shaped
    file yields ``_default()``.  The reason for the most recent failure is
    kept in :attr:`last_error`.

    Subclasses set ``collection_key`` and override ``_default()`` and
    ``_backfill()``.
    """

    #: Top-level field that must hold a JSON object for the file to be valid.
    collection_key: str = "items"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.last_error: str | None = None

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".bak")

    # -- core I/O -------------------------------------------------------------

    def load_document(self) -> dict[str, Any]:
        """Read, validate and backfill the document; default on any problem."""
        self.last_error = None
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return self._default()
        except (OSError, UnicodeDecodeError) as exc:
            self._note(f"could not read {self.path}: {exc}")
            return self._default()

        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as exc:
            self._note(f"could not parse {self.path}: {exc}")
            return self._default()

        if not isinstance(data, dict) or not isinstance(
            data.get(self.collection_key), dict
        ):
            self._note(
                f"invalid structure in {self.path}: "
                f"'{self.collection_key}' is not a mapping, resetting"
            )
            return self._default()

        return self._backfill(data)

    def save_document(self, document: dict[str, Any]) -> bool:
        """Persist *document*; return ``False`` (never raise) on failure."""
        self.last_error = None
        try:
            content = json.dumps(document, indent=2, ensure_ascii=False)
        except (TypeError, ValueError, RecursionError) as exc:
            self._note(f"could not serialize document for {self.path}: {exc}")
            return False

        backed_up = False
        try:
            ensure_dir(self.path.parent)
            if self.path.exists():
                shutil.copy2(self.path, self.backup_path)
                backed_up = True
            with open(self.temp_path, "w", encoding="utf-8") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(self.temp_path, self.path)
        except OSError as exc:
            self._note(f"error saving {self.path}: {exc}")
            if backed_up:
                self._restore_backup()
            self._discard(self.temp_path)
            return False

        if backed_up:
            self._discard(self.backup_path)
        return True

    # -- helpers --------------------------------------------------------------

    def _restore_backup(self) -> None:
        try:
            shutil.copyfile(self.backup_path, self.path)
        except OSError as exc:
            logger.error("failed to restore %s from backup: %s", self.path, exc)
        else:
            logger.warning("restored %s from backup", self.path)

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.debug("could not remove %s", path, exc_info=True)

    def _note(self, message: str) -> None:
        self.last_error = message
        logger.warning(message)

    # -- override points ------------------------------------------------------

    def _default(self) -> dict[str, Any]:
        """Return the empty-state document for this store."""
        return {self.collection_key: {}}

    def _backfill(self, data: dict[str, Any]) -> dict[str, Any]:  # noqa: PLR6301
        """Fill optional fields missing from a valid on-disk document."""
        return data
