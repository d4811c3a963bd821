# Vault - Data Models

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class DecryptStatus(str, Enum):
    """Outcome of opening an entry's stored password.

    DECRYPTED: password holds a non-empty plaintext.
    FAILED: the blob did not open with the current key (tampered or
        encrypted under another master password); password is "".
    EMPTY: no password is set. Either the blob opened to "" or the entry
        has not been stored or read back yet.

    A "" password is therefore never ambiguous: the status says which.
    """
    DECRYPTED = "decrypted"
    FAILED = "failed"
    EMPTY = "empty"

    @classmethod
    def for_plaintext(cls, password: str) -> "DecryptStatus":
        return cls.DECRYPTED if password else cls.EMPTY


@dataclass
class CredentialEntry:
    """One stored site credential.

    `password` is plaintext and exists only in memory. The database holds
    `encrypted_blob` instead.
    """

    url: str
    username: str = ""
    password: str = ""
    id: Optional[int] = None
    last_modified: int = 0
    encrypted_blob: str = field(default="", repr=False)
    decrypt_status: DecryptStatus = DecryptStatus.EMPTY

    @property
    def is_decryptable(self) -> bool:
        return self.decrypt_status != DecryptStatus.FAILED

    def to_dict(self, include_password: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "username": self.username,
            "last_modified": self.last_modified,
            "decrypt_status": self.decrypt_status.value,
        }
        if include_password:
            data["password"] = self.password
        return data
