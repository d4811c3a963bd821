# Auth - Master Password Record Store
#
# Persists the AuthRecord as a small JSON object:
#
#     {"hash": "<base64, 32 bytes>", "salt": "<base64, 16 bytes>"}
#
# load() never raises: a missing file, a malformed file and an unreadable
# file all come back as None, but the store records which of the three it
# was (last_outcome) so callers and the audit log can tell them apart.

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..core import paths
from ..core.errors import ConfigurationMissing, RecordAbsent, StorageFailure
from .kdf import KEY_LENGTH, SALT_LENGTH

logger = logging.getLogger(__name__)

RECORD_FILE_MODE = 0o600


@dataclass(frozen=True)
class AuthRecord:
    """Stored proof that a master password was set up."""

    password_hash: bytes
    salt: bytes

    def to_json(self) -> str:
        return json.dumps({
            "hash": base64.b64encode(self.password_hash).decode("ascii"),
            "salt": base64.b64encode(self.salt).decode("ascii"),
        })

    @classmethod
    def from_json(cls, text: str) -> "AuthRecord":
        """Parse a serialized record.

        Raises:
            ValueError: not a JSON object, missing/empty fields, bad base64
                or wrong decoded lengths.
        """
        obj = json.loads(text)
        if not isinstance(obj, dict):
            raise ValueError("Auth record is not a JSON object")

        hash_b64 = obj.get("hash")
        salt_b64 = obj.get("salt")
        if not isinstance(hash_b64, str) or not hash_b64:
            raise ValueError("Auth record missing 'hash'")
        if not isinstance(salt_b64, str) or not salt_b64:
            raise ValueError("Auth record missing 'salt'")

        try:
            password_hash = base64.b64decode(hash_b64, validate=True)
            salt = base64.b64decode(salt_b64, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Auth record is not valid base64: {exc}") from exc

        if len(password_hash) != KEY_LENGTH:
            raise ValueError("Auth record hash has wrong length")
        if len(salt) != SALT_LENGTH:
            raise ValueError("Auth record salt has wrong length")

        return cls(password_hash=password_hash, salt=salt)


class LoadOutcome(str, Enum):
    """What happened on the last load() call."""
    NOT_ATTEMPTED = "not_attempted"
    LOADED = "loaded"
    MISSING = "missing"
    MALFORMED = "malformed"
    IO_ERROR = "io_error"


class AuthRecordStore:
    """Reads and writes the AuthRecord file."""

    def __init__(self, record_path: Optional[Path] = None):
        """
        Args:
            record_path: Location of auth.json. If None, resolved from $HOME
                on each call so a missing HOME only matters when touched.
        """
        self._record_path = Path(record_path) if record_path is not None else None
        self.last_outcome = LoadOutcome.NOT_ATTEMPTED

    @property
    def record_path(self) -> Path:
        """Resolved path of auth.json.

        Raises:
            ConfigurationMissing: no explicit path and HOME is not set.
        """
        if self._record_path is not None:
            return self._record_path
        return paths.auth_record_path()

    def load(self) -> Optional[AuthRecord]:
        """Return the persisted record, or None if absent/unusable."""
        try:
            path = self.record_path
        except ConfigurationMissing as exc:
            logger.warning("Auth record location unavailable: %s", exc)
            self.last_outcome = LoadOutcome.IO_ERROR
            return None

        try:
            text = self._read(path)
        except RecordAbsent:
            self.last_outcome = LoadOutcome.MISSING
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Auth record at %s unreadable: %s", path, exc)
            self.last_outcome = LoadOutcome.IO_ERROR
            return None

        try:
            record = AuthRecord.from_json(text)
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning("Auth record at %s malformed: %s", path, exc)
            self.last_outcome = LoadOutcome.MALFORMED
            return None

        self.last_outcome = LoadOutcome.LOADED
        return record

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise RecordAbsent(f"No auth record at {path}") from exc

    def save(self, record: AuthRecord) -> None:
        """Write the record atomically, overwriting any previous one.

        Raises:
            ConfigurationMissing: HOME is not set.
            StorageFailure: the directory or file could not be written.
        """
        path = self.record_path
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            paths.ensure_config_dir(path.parent)
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, RECORD_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.to_json())
            os.replace(tmp_path, path)
        except OSError as exc:
            try:
                tmp_path.unlink()
            except OSError:
                pass
            raise StorageFailure(f"Failed to save auth record: {exc}") from exc
