"""Tests for the atomic JSON store.

Covers:
  1. load_document() on a missing file returns the default
  2. load_document() self-heals corrupt or wrongly shaped files
  3. save_document() leaves no temp or backup file behind
  4. save_document() keeps the previous file intact when a write fails
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from unittest.mock import patch

from session_vault.persistence import AliasStore
from session_vault.persistence._base import AtomicJsonStore


class TestLoadDocument:
    def test_missing_file_returns_default(self, tmp_path):
        store = AtomicJsonStore(tmp_path / "nope.json")
        assert store.load_document() == {"items": {}}
        assert store.last_error is None

    def test_valid_document_round_trips(self, tmp_path):
        store = AtomicJsonStore(tmp_path / "data.json")
        assert store.save_document({"items": {"a": 1}, "extra": [1, 2]})
        assert store.load_document() == {"items": {"a": 1}, "extra": [1, 2]}

    def test_corrupt_json_returns_default(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not valid json{{{")
        store = AtomicJsonStore(path)
        assert store.load_document() == {"items": {}}
        assert "could not parse" in store.last_error

    def test_collection_as_list_is_rejected(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"items": [1, 2, 3]}))
        store = AtomicJsonStore(path)
        assert store.load_document() == {"items": {}}
        assert "not a mapping" in store.last_error

    def test_top_level_array_is_rejected(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("[]")
        assert AtomicJsonStore(path).load_document() == {"items": {}}

    def test_missing_collection_is_rejected(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"other": {}}))
        assert AtomicJsonStore(path).load_document() == {"items": {}}

    def test_invalid_utf8_returns_default(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert AtomicJsonStore(path).load_document() == {"items": {}}

    def test_self_healing_does_not_rewrite_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("corrupt!!!{")
        AtomicJsonStore(path).load_document()
        assert path.read_text() == "corrupt!!!{"


class TestSaveDocument:
    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "deep" / "nested" / "store.json"
        store = AtomicJsonStore(path)
        assert store.save_document({"items": {"a": 1}})
        assert path.exists()

    def test_existing_parent_dir_is_fine(self, tmp_path):
        store = AtomicJsonStore(tmp_path / "store.json")
        assert store.save_document({"items": {}})
        assert store.save_document({"items": {}})

    def test_no_temp_or_backup_left_behind(self, tmp_path):
        store = AtomicJsonStore(tmp_path / "store.json")
        assert store.save_document({"items": {"a": 1}})
        assert store.save_document({"items": {"a": 1}})
        assert not store.temp_path.exists()
        assert not store.backup_path.exists()

    def test_writes_pretty_json(self, tmp_path):
        path = tmp_path / "store.json"
        AtomicJsonStore(path).save_document({"items": {"a": 1}})
        assert path.read_text(encoding="utf-8") == json.dumps(
            {"items": {"a": 1}}, indent=2
        )

    def test_unserializable_document_fails_without_touching_disk(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text('{"items": {}}')
        store = AtomicJsonStore(path)
        assert store.save_document({"items": {"bad": object()}}) is False
        assert path.read_text() == '{"items": {}}'
        assert not store.backup_path.exists()
        assert not store.temp_path.exists()
        assert "could not serialize" in store.last_error

    def test_circular_document_fails(self, tmp_path):
        doc: dict = {"items": {}}
        doc["items"]["self"] = doc
        store = AtomicJsonStore(tmp_path / "store.json")
        assert store.save_document(doc) is False
        assert not store.path.exists()

    def test_deeply_nested_document_fails(self, tmp_path):
        doc: dict = {"items": {}}
        node = doc["items"]
        for _ in range(5_000):
            node["child"] = {}
            node = node["child"]
        store = AtomicJsonStore(tmp_path / "store.json")
        assert store.save_document(doc) is False
        assert "could not serialize" in store.last_error
        assert not store.path.exists()

    def test_failed_rename_keeps_previous_content(self, tmp_path):
        path = tmp_path / "store.json"
        store = AtomicJsonStore(path)
        store.save_document({"items": {"old": 1}})

        with patch(
            "session_vault.persistence._base.os.replace",
            side_effect=OSError("disk full"),
        ):
            assert store.save_document({"items": {"new": 2}}) is False
        assert "disk full" in store.last_error

        assert store.load_document() == {"items": {"old": 1}}
        assert store.last_error is None
        assert not store.temp_path.exists()

    def test_failed_temp_write_restores_backup(self, tmp_path):
        path = tmp_path / "store.json"
        store = AtomicJsonStore(path)
        store.save_document({"items": {"old": 1}})

        with patch(
            "session_vault.persistence._base.os.fsync",
            side_effect=OSError("io error"),
        ):
            assert store.save_document({"items": {"new": 2}}) is False

        assert json.loads(path.read_text()) == {"items": {"old": 1}}
        assert not store.temp_path.exists()

    def test_failed_restore_still_reports_failure(self, tmp_path, caplog):
        path = tmp_path / "store.json"
        store = AtomicJsonStore(path)
        store.save_document({"items": {"old": 1}})
        real_copyfile = shutil.copyfile

        def copy_except_restore(src, dst, *args, **kwargs):
            if Path(src) == store.backup_path:
                raise OSError("restore failed")
            return real_copyfile(src, dst, *args, **kwargs)

        with (
            patch(
                "session_vault.persistence._base.os.replace",
                side_effect=OSError("rename failed"),
            ),
            patch(
                "session_vault.persistence._base.shutil.copyfile",
                side_effect=copy_except_restore,
            ),
        ):
            assert store.save_document({"items": {"new": 2}}) is False

        assert "failed to restore" in caplog.text
        # The rename never happened, so the original is still in place.
        assert json.loads(path.read_text()) == {"items": {"old": 1}}

    def test_first_save_failure_leaves_no_file(self, tmp_path):
        store = AtomicJsonStore(tmp_path / "store.json")
        with patch(
            "session_vault.persistence._base.os.replace",
            side_effect=OSError("nope"),
        ):
            assert store.save_document({"items": {}}) is False
        assert not store.path.exists()
        assert not store.temp_path.exists()


class TestSubclassHooks:
    def test_alias_store_uses_aliases_collection(self, tmp_path):
        path = tmp_path / "aliases.json"
        path.write_text(json.dumps({"items": {}}))
        data = AliasStore(path).load()
        assert data["aliases"] == {}
        assert data["version"] == "1.0"
