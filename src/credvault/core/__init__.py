# Core Module - Shared Utilities
#
# Core module provides shared functionality across credvault modules:
# - Audit logging
# - Error taxonomy
# - SQLite connection helper
# - Per-user file locations

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    log_security_event,
)
from .errors import (
    ConfigurationMissing,
    CryptoFailure,
    NotAuthenticated,
    RecordAbsent,
    RemoteServiceError,
    StorageFailure,
    VaultError,
)

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "log_security_event",
    # Errors
    "VaultError",
    "ConfigurationMissing",
    "RecordAbsent",
    "CryptoFailure",
    "NotAuthenticated",
    "StorageFailure",
    "RemoteServiceError",
]
