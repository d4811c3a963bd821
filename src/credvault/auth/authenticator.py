# Auth - Master Password Authenticator
#
# State machine:
#
#   UNINITIALIZED --setup--> LOCKED --verify ok--> UNLOCKED --sign_out--> LOCKED
#
# setup_master_password() never unlocks. verify_master_password() returns a
# plain bool; a wrong password is not an exception. The session key lives only
# in memory (a bytearray zeroed on sign-out) and is never written anywhere.

import hmac
import os
from enum import Enum
from typing import Optional, Union

from ..core import EventSeverity, EventType, get_audit_logger
from ..core.errors import NotAuthenticated
from . import kdf
from .record_store import AuthRecord, AuthRecordStore, LoadOutcome


class AuthState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class Authenticator:
    """
    Owns the AuthRecord and the in-memory Session.

    Security:
    - Argon2id hash of the master password, random 16-byte salt
    - Constant-time comparison of the candidate hash
    - Vault session key derived with a separate purpose label
    - Session key zeroed on sign-out
    """

    def __init__(self, record_store: Optional[AuthRecordStore] = None):
        """
        Args:
            record_store: Persistence for the AuthRecord. Defaults to
                $HOME/.config/credvault/auth.json.
        """
        self.record_store = record_store or AuthRecordStore()
        self._record: Optional[AuthRecord] = None
        self._session_key: Optional[bytearray] = None
        self.logger = get_audit_logger()

        self.reload()

    def reload(self) -> None:
        """Re-read the persisted record (drops any active session)."""
        self._clear_session()
        self._record = self.record_store.load()

        if self.record_store.last_outcome in (LoadOutcome.MALFORMED, LoadOutcome.IO_ERROR):
            self.logger.log_event(
                event_type=EventType.AUTH_RECORD_UNREADABLE,
                severity=EventSeverity.INVESTIGATE,
                message="Auth record could not be read; treating as not set up",
                details={"outcome": self.record_store.last_outcome.value}
            )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def is_setup(self) -> bool:
        return self._record is not None

    def is_authenticated(self) -> bool:
        return self._session_key is not None

    @property
    def state(self) -> AuthState:
        if self._record is None:
            return AuthState.UNINITIALIZED
        if self._session_key is None:
            return AuthState.LOCKED
        return AuthState.UNLOCKED

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def setup_master_password(self, password: Union[str, bytes]) -> None:
        """
        Create (or replace) the master password record.

        Does not unlock. Any existing session is signed out, since its key
        belongs to the previous record.

        Raises:
            CryptoFailure: key derivation failed.
            ConfigurationMissing: no home directory for the record.
            StorageFailure: record could not be written.
        """
        salt = os.urandom(kdf.SALT_LENGTH)
        password_hash = kdf.derive(password, salt, kdf.AUTH_PURPOSE)
        record = AuthRecord(password_hash=password_hash, salt=salt)

        self.record_store.save(record)

        self._clear_session()
        self._record = record

        self.logger.log_event(
            event_type=EventType.AUTH_SETUP,
            severity=EventSeverity.INFO,
            message="Master password set up"
        )

    def verify_master_password(self, password: Union[str, bytes]) -> bool:
        """
        Check a candidate master password; unlock the session on success.

        Returns:
            True and unlocked on match, False (state unchanged) otherwise,
            including when no record exists.

        Raises:
            CryptoFailure: key derivation failed.
        """
        record = self._record
        if record is None:
            return False

        candidate = kdf.derive(password, record.salt, kdf.AUTH_PURPOSE)
        if not hmac.compare_digest(candidate, record.password_hash):
            self.logger.log_event(
                event_type=EventType.AUTH_UNLOCK_FAILED,
                severity=EventSeverity.INVESTIGATE,
                message="Master password rejected"
            )
            return False

        session_key = kdf.derive(password, record.salt, kdf.VAULT_PURPOSE)
        self._clear_session()
        self._session_key = bytearray(session_key)

        self.logger.log_event(
            event_type=EventType.AUTH_UNLOCKED,
            severity=EventSeverity.INFO,
            message="Session unlocked"
        )
        return True

    def sign_out(self) -> None:
        """Lock the session and zero the session key."""
        was_authenticated = self.is_authenticated()
        self._clear_session()

        if was_authenticated:
            self.logger.log_event(
                event_type=EventType.AUTH_SIGNED_OUT,
                severity=EventSeverity.INFO,
                message="Session signed out"
            )

    def session_key(self) -> Optional[bytes]:
        """Current vault key, or None when not authenticated."""
        if self._session_key is None:
            return None
        return bytes(self._session_key)

    def require_session_key(self) -> bytes:
        """Current vault key.

        Raises:
            NotAuthenticated: no unlocked session.
        """
        key = self.session_key()
        if key is None:
            raise NotAuthenticated()
        return key

    def _clear_session(self) -> None:
        if self._session_key is not None:
            for i in range(len(self._session_key)):
                self._session_key[i] = 0
        self._session_key = None
