# Vault Module - Encrypted Credential Store
#
# SQLite table of site credentials, each password sealed with
# AES-256-GCM under the Argon2id-derived session key.

from .encryption import EncryptionService, open_blob, seal
from .models import CredentialEntry, DecryptStatus
from .vault_store import VaultStore

__all__ = [
    "VaultStore",
    "EncryptionService",
    "CredentialEntry",
    "DecryptStatus",
    "seal",
    "open_blob",
]
