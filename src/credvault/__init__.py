# credvault - Main Package
#
# Local master-password authentication and encrypted credential vault:
# Argon2id key derivation, AES-256-GCM per-entry encryption, SQLite storage.

__version__ = "0.1.0"
__description__ = "Local master-password authentication and credential vault"

from .context import VaultContext
from .core import (
    ConfigurationMissing,
    CryptoFailure,
    EventSeverity,
    EventType,
    NotAuthenticated,
    RemoteServiceError,
    StorageFailure,
    VaultError,
    get_audit_logger,
)

__all__ = [
    "__version__",
    "VaultContext",
    "VaultError",
    "ConfigurationMissing",
    "CryptoFailure",
    "NotAuthenticated",
    "StorageFailure",
    "RemoteServiceError",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
]
