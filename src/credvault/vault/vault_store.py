# Vault - Credential Store
#
# SQLite table of site credentials with AES-256-GCM encrypted password fields.
#
# Security:
# - Every operation requires an unlocked Authenticator session; without one
#   NotAuthenticated is raised before the database is touched
# - Each password sealed with a fresh nonce under the session key
# - The session key is borrowed per call and never written to disk
# - Audit logging for every mutation (never the password itself)

import logging
import sqlite3
import time
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from ..auth.authenticator import Authenticator
from ..core import EventSeverity, EventType, get_audit_logger, paths
from ..core.db import transaction
from ..core.errors import CryptoFailure, StorageFailure
from .encryption import EncryptionService
from .models import CredentialEntry, DecryptStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA = """
    CREATE TABLE IF NOT EXISTS passwords (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        url TEXT NOT NULL,
        username TEXT,
        encrypted_password TEXT NOT NULL,
        last_modified INTEGER NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_pw_url ON passwords(url);
"""

SELECT_COLUMNS = "SELECT id, url, username, encrypted_password, last_modified FROM passwords"
ORDER_BY = "ORDER BY url ASC, id ASC"


class VaultStore:
    """
    Manages the encrypted credential table.

    Operations: add, list, get, update, delete, search, count.
    """

    def __init__(self, authenticator: Authenticator, db_path: Optional[Path] = None):
        """
        Args:
            authenticator: Source of the session key.
            db_path: Path to the SQLite file. If None, uses
                $HOME/.config/credvault/passwords.db (resolved on first use).
        """
        self.authenticator = authenticator
        self._db_path = Path(db_path) if db_path is not None else None
        self._initialized = False
        self.logger = get_audit_logger()

    @property
    def db_path(self) -> Path:
        if self._db_path is None:
            self._db_path = paths.vault_db_path()
        return self._db_path

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _session_key(self) -> bytes:
        """Borrow the session key or fail before any storage access."""
        if not self.authenticator.is_authenticated():
            self.logger.log_event(
                event_type=EventType.VAULT_ACCESS_DENIED,
                severity=EventSeverity.ALERT,
                message="Vault operation attempted while locked"
            )
        return self.authenticator.require_session_key()

    def _run(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run fn inside a transaction, mapping I/O errors to StorageFailure."""
        try:
            if not self._initialized:
                paths.ensure_config_dir(self.db_path.parent)
                with transaction(self.db_path) as conn:
                    conn.executescript(SCHEMA)
                self._initialized = True

            with transaction(self.db_path) as conn:
                return fn(conn)
        except (sqlite3.Error, OSError) as exc:
            self.logger.log_event(
                event_type=EventType.VAULT_ERROR,
                severity=EventSeverity.CRITICAL,
                message=f"Failed to {operation}: {exc}"
            )
            raise StorageFailure(f"Failed to {operation}: {exc}") from exc

    def _row_to_entry(self, row: sqlite3.Row, key: bytes) -> CredentialEntry:
        entry = CredentialEntry(
            id=row["id"],
            url=row["url"],
            username=row["username"] or "",
            encrypted_blob=row["encrypted_password"],
            last_modified=row["last_modified"],
        )
        try:
            entry.password = EncryptionService.open_blob(entry.encrypted_blob, key)
            entry.decrypt_status = DecryptStatus.for_plaintext(entry.password)
        except CryptoFailure as exc:
            entry.password = ""
            entry.decrypt_status = DecryptStatus.FAILED
            self.logger.log_event(
                event_type=EventType.VAULT_ENTRY_UNDECRYPTABLE,
                severity=EventSeverity.ALERT,
                message="Stored password could not be decrypted",
                details={"entry_id": entry.id, "reason": str(exc)}
            )
        return entry

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add(self, entry: CredentialEntry) -> CredentialEntry:
        """
        Encrypt and insert a new entry.

        Sets entry.id, entry.last_modified and entry.encrypted_blob.

        Raises:
            NotAuthenticated, CryptoFailure, StorageFailure
        """
        key = self._session_key()
        blob = EncryptionService.seal(entry.password, key)
        now = int(time.time())

        def insert(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "INSERT INTO passwords (url, username, encrypted_password, last_modified) "
                "VALUES (?, ?, ?, ?)",
                (entry.url, entry.username, blob, now)
            )
            return cursor.lastrowid

        entry.id = self._run("add password", insert)
        entry.last_modified = now
        entry.encrypted_blob = blob
        entry.decrypt_status = DecryptStatus.for_plaintext(entry.password)

        self.logger.log_vault_event(
            EventType.VAULT_ENTRY_ADDED,
            f"Password added for {entry.url}",
            details={"entry_id": entry.id}
        )
        return entry

    def list(self) -> List[CredentialEntry]:
        """
        All entries ordered by url, each decrypted.

        Rows that fail to decrypt are still returned, with password "" and
        decrypt_status FAILED.
        """
        key = self._session_key()
        rows = self._run(
            "list passwords",
            lambda conn: conn.execute(f"{SELECT_COLUMNS} {ORDER_BY}").fetchall()
        )
        return [self._row_to_entry(row, key) for row in rows]

    def get(self, entry_id: int) -> Optional[CredentialEntry]:
        """Single decrypted entry, or None if the id does not exist."""
        key = self._session_key()
        row = self._run(
            "get password",
            lambda conn: conn.execute(
                f"{SELECT_COLUMNS} WHERE id = ?", (entry_id,)
            ).fetchone()
        )
        if row is None:
            return None
        return self._row_to_entry(row, key)

    def update(self, entry: CredentialEntry) -> bool:
        """
        Re-encrypt entry.password and rewrite the row for entry.id.

        Returns:
            True if a row was updated, False if entry.id does not exist.
        """
        key = self._session_key()
        if entry.id is None:
            return False

        blob = EncryptionService.seal(entry.password, key)
        now = int(time.time())

        def rewrite(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "UPDATE passwords SET url = ?, username = ?, encrypted_password = ?, "
                "last_modified = ? WHERE id = ?",
                (entry.url, entry.username, blob, now, entry.id)
            )
            return cursor.rowcount

        if self._run("update password", rewrite) == 0:
            return False

        entry.last_modified = now
        entry.encrypted_blob = blob
        entry.decrypt_status = DecryptStatus.for_plaintext(entry.password)

        self.logger.log_vault_event(
            EventType.VAULT_ENTRY_UPDATED,
            f"Password updated for {entry.url}",
            details={"entry_id": entry.id}
        )
        return True

    def delete(self, entry_id: int) -> None:
        """Remove the entry with this id. Unknown ids are not an error."""
        self._session_key()
        deleted = self._run(
            "delete password",
            lambda conn: conn.execute(
                "DELETE FROM passwords WHERE id = ?", (entry_id,)
            ).rowcount
        )
        if deleted:
            self.logger.log_vault_event(
                EventType.VAULT_ENTRY_DELETED,
                "Password deleted",
                details={"entry_id": entry_id}
            )

    def search(self, query: str) -> List[CredentialEntry]:
        """
        Case-insensitive substring match over url and username.

        Filtering happens before decryption so non-matching rows are never
        opened. An empty query matches everything.
        """
        key = self._session_key()
        needle = query.casefold()
        rows = self._run(
            "search passwords",
            lambda conn: conn.execute(f"{SELECT_COLUMNS} {ORDER_BY}").fetchall()
        )
        return [
            self._row_to_entry(row, key)
            for row in rows
            if needle in row["url"].casefold()
            or needle in (row["username"] or "").casefold()
        ]

    def count(self) -> int:
        self._session_key()
        return self._run(
            "count passwords",
            lambda conn: conn.execute("SELECT COUNT(*) FROM passwords").fetchone()[0]
        )
