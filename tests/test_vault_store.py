"""Tests for the encrypted credential store."""

import sqlite3

import pytest

from credvault.auth.authenticator import Authenticator
from credvault.auth.record_store import AuthRecordStore
from credvault.core.errors import NotAuthenticated, StorageFailure
from credvault.vault.models import CredentialEntry, DecryptStatus
from credvault.vault.vault_store import VaultStore


@pytest.fixture
def auth(data_dir):
    a = Authenticator(AuthRecordStore(data_dir / "auth.json"))
    a.setup_master_password("hunter2")
    a.verify_master_password("hunter2")
    return a


@pytest.fixture
def db_path(data_dir):
    return data_dir / "passwords.db"


@pytest.fixture
def vault(auth, db_path):
    return VaultStore(auth, db_path=db_path)


def _rows(db_path):
    conn = sqlite3.connect(str(db_path))
    try:
        return conn.execute(
            "SELECT id, url, username, encrypted_password, last_modified FROM passwords"
        ).fetchall()
    finally:
        conn.close()


class TestAdd:

    def test_add_then_list(self, vault):
        entry = CredentialEntry(url="example.com", username="a", password="p@ss")
        vault.add(entry)

        entries = vault.list()
        assert len(entries) == 1
        assert entries[0].url == "example.com"
        assert entries[0].username == "a"
        assert entries[0].password == "p@ss"
        assert entries[0].decrypt_status == DecryptStatus.DECRYPTED

    def test_add_assigns_id_and_timestamp(self, vault):
        entry = CredentialEntry(url="example.com", username="a", password="p@ss")
        vault.add(entry)
        assert isinstance(entry.id, int)
        assert entry.last_modified > 0

    def test_ids_are_unique(self, vault):
        first = vault.add(CredentialEntry(url="a.com", password="1"))
        second = vault.add(CredentialEntry(url="b.com", password="2"))
        assert first.id != second.id

    def test_ids_not_reused_after_delete(self, vault):
        first = vault.add(CredentialEntry(url="a.com", password="1"))
        vault.delete(first.id)
        second = vault.add(CredentialEntry(url="b.com", password="2"))
        assert second.id > first.id

    def test_password_not_stored_in_plaintext(self, vault, db_path):
        vault.add(CredentialEntry(url="example.com", username="a", password="p@ss-secret"))
        (row,) = _rows(db_path)
        assert "p@ss-secret" not in row[3]

    def test_session_key_never_persisted(self, vault, auth, db_path):
        vault.add(CredentialEntry(url="example.com", password="p@ss"))
        assert auth.session_key() not in db_path.read_bytes()


class TestList:

    def test_ordered_by_url(self, vault):
        for url in ["zeta.com", "alpha.com", "mid.com"]:
            vault.add(CredentialEntry(url=url, password="x"))
        assert [e.url for e in vault.list()] == ["alpha.com", "mid.com", "zeta.com"]

    def test_same_url_keeps_insert_order(self, vault):
        first = vault.add(CredentialEntry(url="same.com", username="one", password="1"))
        second = vault.add(CredentialEntry(url="same.com", username="two", password="2"))
        assert [e.id for e in vault.list()] == [first.id, second.id]

    def test_empty_vault(self, vault):
        assert vault.list() == []

    def test_undecryptable_row_returned_with_empty_password(self, vault, db_path):
        good = vault.add(CredentialEntry(url="a.com", password="good"))
        bad = vault.add(CredentialEntry(url="b.com", password="bad"))

        conn = sqlite3.connect(str(db_path))
        conn.execute(
            "UPDATE passwords SET encrypted_password = ? WHERE id = ?",
            ("AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA", bad.id)
        )
        conn.commit()
        conn.close()

        entries = {e.id: e for e in vault.list()}
        assert entries[good.id].password == "good"
        assert entries[good.id].decrypt_status == DecryptStatus.DECRYPTED
        assert entries[bad.id].password == ""
        assert entries[bad.id].decrypt_status == DecryptStatus.FAILED
        assert not entries[bad.id].is_decryptable

    def test_entries_from_other_master_password_fail(self, vault, auth, data_dir, db_path):
        vault.add(CredentialEntry(url="a.com", password="p@ss"))

        other = Authenticator(AuthRecordStore(data_dir / "other.json"))
        other.setup_master_password("different")
        other.verify_master_password("different")

        (entry,) = VaultStore(other, db_path=db_path).list()
        assert entry.decrypt_status == DecryptStatus.FAILED
        assert entry.password == ""

    def test_empty_password_reads_back_as_empty_not_failed(self, vault):
        added = vault.add(CredentialEntry(url="a.com", password=""))
        assert added.decrypt_status == DecryptStatus.EMPTY

        (entry,) = vault.list()
        assert entry.password == ""
        assert entry.decrypt_status == DecryptStatus.EMPTY
        assert entry.is_decryptable

    def test_empty_and_failed_are_distinguishable(self, vault, db_path):
        empty = vault.add(CredentialEntry(url="a.com", password=""))
        broken = vault.add(CredentialEntry(url="b.com", password="secret"))
        conn = sqlite3.connect(str(db_path))
        conn.execute(
            "UPDATE passwords SET encrypted_password = ? WHERE id = ?",
            ("AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA", broken.id)
        )
        conn.commit()
        conn.close()

        statuses = {e.id: e.decrypt_status for e in vault.list()}
        assert statuses == {empty.id: DecryptStatus.EMPTY, broken.id: DecryptStatus.FAILED}

    def test_update_to_empty_password(self, vault):
        entry = vault.add(CredentialEntry(url="a.com", password="p"))
        entry.password = ""
        vault.update(entry)
        assert entry.decrypt_status == DecryptStatus.EMPTY
        assert vault.get(entry.id).decrypt_status == DecryptStatus.EMPTY


class TestGet:

    def test_get_existing(self, vault):
        added = vault.add(CredentialEntry(url="a.com", username="u", password="p"))
        fetched = vault.get(added.id)
        assert fetched.password == "p"
        assert fetched.username == "u"

    def test_get_missing(self, vault):
        assert vault.get(999) is None


class TestDelete:

    def test_delete_removes_row(self, vault):
        entry = vault.add(CredentialEntry(url="a.com", password="p"))
        vault.delete(entry.id)
        assert vault.list() == []

    def test_delete_missing_id_is_noop(self, vault):
        vault.add(CredentialEntry(url="a.com", password="p"))
        before = vault.list()
        vault.delete(12345)
        after = vault.list()
        assert [e.to_dict() for e in after] == [e.to_dict() for e in before]


class TestUpdate:

    def test_update_reencrypts(self, vault, db_path):
        entry = vault.add(CredentialEntry(url="a.com", username="u", password="old"))
        (old_row,) = _rows(db_path)

        entry.password = "new"
        entry.username = "u2"
        assert vault.update(entry) is True

        fetched = vault.get(entry.id)
        assert fetched.password == "new"
        assert fetched.username == "u2"
        (new_row,) = _rows(db_path)
        assert new_row[3] != old_row[3]

    def test_update_rewrites_timestamp(self, vault, monkeypatch):
        import credvault.vault.vault_store as store_mod

        monkeypatch.setattr(store_mod.time, "time", lambda: 1000.0)
        entry = vault.add(CredentialEntry(url="a.com", password="p"))
        assert entry.last_modified == 1000

        monkeypatch.setattr(store_mod.time, "time", lambda: 2000.0)
        vault.update(entry)
        assert entry.last_modified == 2000
        assert vault.get(entry.id).last_modified == 2000

    def test_update_missing_id_returns_false(self, vault):
        assert vault.update(CredentialEntry(id=999, url="a.com", password="p")) is False
        assert vault.list() == []

    def test_update_without_id_returns_false(self, vault):
        assert vault.update(CredentialEntry(url="a.com", password="p")) is False


class TestSearch:

    @pytest.fixture
    def populated(self, vault):
        vault.add(CredentialEntry(url="github.com", username="octocat", password="1"))
        vault.add(CredentialEntry(url="mail.example.com", username="Alice", password="2"))
        vault.add(CredentialEntry(url="bank.example.org", username="bob", password="3"))
        return vault

    def test_matches_url_case_insensitive(self, populated):
        assert [e.url for e in populated.search("EXAMPLE")] == [
            "bank.example.org", "mail.example.com"
        ]

    def test_matches_username(self, populated):
        (entry,) = populated.search("alice")
        assert entry.url == "mail.example.com"
        assert entry.password == "2"

    def test_no_match(self, populated):
        assert populated.search("nothing-here") == []

    def test_empty_query_returns_all(self, populated):
        assert len(populated.search("")) == 3

    def test_wildcards_are_literal(self, populated):
        assert populated.search("%") == []
        assert populated.search("_") == []


class TestAccessControl:

    OPERATIONS = [
        ("add", lambda v: v.add(CredentialEntry(url="a.com", password="p"))),
        ("list", lambda v: v.list()),
        ("get", lambda v: v.get(1)),
        ("update", lambda v: v.update(CredentialEntry(id=1, url="a.com", password="p"))),
        ("delete", lambda v: v.delete(1)),
        ("search", lambda v: v.search("a")),
        ("count", lambda v: v.count()),
    ]

    @pytest.mark.parametrize("name,op", OPERATIONS, ids=[o[0] for o in OPERATIONS])
    def test_locked_vault_rejects_without_touching_storage(self, data_dir, db_path, name, op):
        auth = Authenticator(AuthRecordStore(data_dir / "auth.json"))
        auth.setup_master_password("hunter2")
        vault = VaultStore(auth, db_path=db_path)

        with pytest.raises(NotAuthenticated):
            op(vault)
        assert not db_path.exists()

    def test_locked_vault_does_not_mutate_existing_rows(self, vault, auth, db_path):
        entry = vault.add(CredentialEntry(url="a.com", password="p"))
        before = _rows(db_path)
        auth.sign_out()

        with pytest.raises(NotAuthenticated):
            vault.delete(entry.id)
        with pytest.raises(NotAuthenticated):
            vault.add(CredentialEntry(url="b.com", password="q"))
        assert _rows(db_path) == before

    def test_sign_out_blocks_decryption_until_reunlock(self, vault, auth):
        vault.add(CredentialEntry(url="a.com", password="p@ss"))
        auth.sign_out()
        with pytest.raises(NotAuthenticated):
            vault.list()

        assert auth.verify_master_password("hunter2")
        assert vault.list()[0].password == "p@ss"


class TestStorageErrors:

    def test_unusable_db_path_is_storage_failure(self, auth, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        vault = VaultStore(auth, db_path=blocker / "passwords.db")
        with pytest.raises(StorageFailure):
            vault.list()

    def test_default_path_under_home(self, auth, _isolate_home):
        VaultStore(auth).add(CredentialEntry(url="a.com", password="p"))
        assert (_isolate_home / ".config" / "credvault" / "passwords.db").is_file()

    def test_schema_matches_layout(self, vault, db_path):
        vault.count()
        conn = sqlite3.connect(str(db_path))
        columns = [r[1] for r in conn.execute("PRAGMA table_info(passwords)")]
        indexes = [r[1] for r in conn.execute("PRAGMA index_list(passwords)")]
        conn.close()
        assert columns == ["id", "url", "username", "encrypted_password", "last_modified"]
        assert "idx_pw_url" in indexes
