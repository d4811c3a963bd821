"""Tests for the AuthRecord file store."""

import base64
import json
import os
import stat
import sys

import pytest

from credvault.auth.record_store import AuthRecord, AuthRecordStore, LoadOutcome
from credvault.core.errors import ConfigurationMissing, StorageFailure

HASH = b"\xaa" * 32
SALT = b"\xbb" * 16


@pytest.fixture
def record():
    return AuthRecord(password_hash=HASH, salt=SALT)


@pytest.fixture
def store(tmp_path):
    return AuthRecordStore(tmp_path / "cfg" / "auth.json")


class TestSerialization:

    def test_json_fields_are_base64(self, record):
        obj = json.loads(record.to_json())
        assert set(obj) == {"hash", "salt"}
        assert base64.b64decode(obj["hash"]) == HASH
        assert base64.b64decode(obj["salt"]) == SALT

    def test_from_json_roundtrip(self, record):
        assert AuthRecord.from_json(record.to_json()) == record

    @pytest.mark.parametrize("text", [
        "[]",
        '{"hash": "", "salt": ""}',
        '{"salt": "u7u7u7u7u7u7u7u7u7u7uw=="}',
        '{"hash": "%%%", "salt": "u7u7u7u7u7u7u7u7u7u7uw=="}',
        '{"hash": "qqo=", "salt": "u7u7u7u7u7u7u7u7u7u7uw=="}',
    ])
    def test_from_json_rejects_bad_records(self, text):
        with pytest.raises(ValueError):
            AuthRecord.from_json(text)


class TestLoad:

    def test_missing_file(self, store):
        assert store.load() is None
        assert store.last_outcome == LoadOutcome.MISSING

    def test_malformed_json(self, store):
        store.record_path.parent.mkdir(parents=True)
        store.record_path.write_text("{not json")
        assert store.load() is None
        assert store.last_outcome == LoadOutcome.MALFORMED

    def test_non_object_json(self, store):
        store.record_path.parent.mkdir(parents=True)
        store.record_path.write_text('"just a string"')
        assert store.load() is None
        assert store.last_outcome == LoadOutcome.MALFORMED

    def test_unreadable_path_is_io_error(self, store):
        # A directory where the file should be
        store.record_path.mkdir(parents=True)
        assert store.load() is None
        assert store.last_outcome == LoadOutcome.IO_ERROR

    def test_no_home_is_io_error(self, monkeypatch):
        monkeypatch.delenv("HOME", raising=False)
        store = AuthRecordStore()
        assert store.load() is None
        assert store.last_outcome == LoadOutcome.IO_ERROR

    def test_loads_saved_record(self, store, record):
        store.save(record)
        assert store.load() == record
        assert store.last_outcome == LoadOutcome.LOADED


class TestSave:

    def test_creates_parent_directories(self, store, record):
        store.save(record)
        assert store.record_path.is_file()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only_permissions(self, store, record):
        store.save(record)
        dir_mode = stat.S_IMODE(os.stat(store.record_path.parent).st_mode)
        file_mode = stat.S_IMODE(os.stat(store.record_path).st_mode)
        assert dir_mode & 0o077 == 0
        assert file_mode & 0o077 == 0

    def test_overwrites_previous_record(self, store, record):
        store.save(record)
        newer = AuthRecord(password_hash=b"\xcc" * 32, salt=b"\xdd" * 16)
        store.save(newer)
        assert store.load() == newer

    def test_no_temp_file_left_behind(self, store, record):
        store.save(record)
        assert [p.name for p in store.record_path.parent.iterdir()] == ["auth.json"]

    def test_default_path_under_home(self, _isolate_home, record):
        store = AuthRecordStore()
        store.save(record)
        assert (_isolate_home / ".config" / "credvault" / "auth.json").is_file()

    def test_no_home_raises_configuration_missing(self, monkeypatch, record):
        monkeypatch.delenv("HOME", raising=False)
        with pytest.raises(ConfigurationMissing):
            AuthRecordStore().save(record)

    def test_unwritable_location_is_storage_failure(self, tmp_path, record):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = AuthRecordStore(blocker / "auth.json")
        with pytest.raises(StorageFailure):
            store.save(record)
