# Core - Error Taxonomy
#
# Every failure the auth/vault engine surfaces is one of these types.
# Wrong passwords are NOT exceptions: verify_master_password() returns False,
# so callers cannot tell "wrong password" from "no such account" by type.


class VaultError(Exception):
    """Base class for all credvault failures."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationMissing(VaultError):
    """No home directory, config file, or required config key."""


class RecordAbsent(VaultError):
    """No AuthRecord persisted yet (normal first-run state)."""


class CryptoFailure(VaultError):
    """KDF or AEAD failure. Fatal to the operation, never retried."""


class NotAuthenticated(VaultError):
    """Vault operation attempted without an unlocked session."""

    def __init__(self, message: str = "Vault is locked. Unlock vault first."):
        super().__init__(message)


class StorageFailure(VaultError):
    """Underlying file or SQLite failure."""


class RemoteServiceError(VaultError):
    """Identity service returned an error or could not be reached."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code
