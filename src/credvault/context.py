# Application Context
#
# One VaultContext per process (or per test) replaces module-level
# singletons. It wires the Authenticator to the VaultStore and serializes
# every call through a single lock: the engine itself is not thread-safe, and
# hosts like the FastAPI threadpool call it from several threads.

import threading
from pathlib import Path
from typing import List, Optional, Union

from .auth.authenticator import Authenticator, AuthState
from .auth.record_store import AuthRecordStore
from .core import paths
from .vault.models import CredentialEntry
from .vault.vault_store import VaultStore


class VaultContext:
    """
    Authenticator + VaultStore behind a single-writer lock.

    Usage::

        ctx = VaultContext()                 # $HOME/.config/credvault
        ctx = VaultContext(data_dir=tmp)     # isolated (tests)
        if not ctx.is_setup():
            ctx.setup("hunter2")
        ctx.unlock("hunter2")
        ctx.add(CredentialEntry(url="example.com", username="a", password="p@ss"))
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Args:
            data_dir: Directory holding auth.json and passwords.db.
                If None, both resolve under $HOME/.config/credvault.
        """
        if data_dir is not None:
            data_dir = Path(data_dir)
            record_store = AuthRecordStore(data_dir / paths.AUTH_RECORD_FILE)
            db_path: Optional[Path] = data_dir / paths.VAULT_DB_FILE
        else:
            record_store = AuthRecordStore()
            db_path = None

        self._lock = threading.RLock()
        self.authenticator = Authenticator(record_store)
        self.vault = VaultStore(self.authenticator, db_path=db_path)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        with self._lock:
            return self.authenticator.state

    def is_setup(self) -> bool:
        with self._lock:
            return self.authenticator.is_setup()

    def is_unlocked(self) -> bool:
        with self._lock:
            return self.authenticator.is_authenticated()

    def setup(self, password: Union[str, bytes]) -> None:
        with self._lock:
            self.authenticator.setup_master_password(password)

    def unlock(self, password: Union[str, bytes]) -> bool:
        with self._lock:
            return self.authenticator.verify_master_password(password)

    def lock(self) -> None:
        with self._lock:
            self.authenticator.sign_out()

    # ------------------------------------------------------------------
    # Vault
    # ------------------------------------------------------------------

    def add(self, entry: CredentialEntry) -> CredentialEntry:
        with self._lock:
            return self.vault.add(entry)

    def list_entries(self) -> List[CredentialEntry]:
        with self._lock:
            return self.vault.list()

    def get(self, entry_id: int) -> Optional[CredentialEntry]:
        with self._lock:
            return self.vault.get(entry_id)

    def update(self, entry: CredentialEntry) -> bool:
        with self._lock:
            return self.vault.update(entry)

    def delete(self, entry_id: int) -> None:
        with self._lock:
            self.vault.delete(entry_id)

    def search(self, query: str) -> List[CredentialEntry]:
        with self._lock:
            return self.vault.search(query)
