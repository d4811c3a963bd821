# Core - Audit Logging
#
# Append-only audit log for every authentication and vault event.
# Each event carries a timestamp, an event ID and the OS user context.
# Secrets (passwords, derived keys, encrypted blobs) are NEVER logged.

import logging
import os
import socket
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog


class EventType(str, Enum):
    """Types of events written to the audit log."""

    # Master password / session
    AUTH_SETUP = "auth.setup"
    AUTH_UNLOCKED = "auth.unlocked"
    AUTH_UNLOCK_FAILED = "auth.unlock.failed"
    AUTH_SIGNED_OUT = "auth.signed_out"
    AUTH_RECORD_UNREADABLE = "auth.record.unreadable"

    # Vault
    VAULT_ENTRY_ADDED = "vault.entry.added"
    VAULT_ENTRY_UPDATED = "vault.entry.updated"
    VAULT_ENTRY_DELETED = "vault.entry.deleted"
    VAULT_ENTRY_UNDECRYPTABLE = "vault.entry.undecryptable"
    VAULT_ACCESS_DENIED = "vault.access.denied"
    VAULT_ERROR = "vault.error"

    # Remote identity service
    IDENTITY_REQUEST_FAILED = "identity.request.failed"

    # System
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"


class EventSeverity(str, Enum):
    """
    Severity levels for audit events.

    - INFO: normal activity
    - INVESTIGATE: unusual but expected (bad password, unreadable record)
    - ALERT: integrity problem (tampered entry, denied access)
    - CRITICAL: operation failed
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger backed by structlog.

    Features:
    - Structured JSON lines, one per event
    - Automatic timestamp and event ID
    - OS user / host context on every event
    - Daily log file under log_dir
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = log_dir or Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._setup_file_handler()

        self.logger = structlog.get_logger("credvault.audit")

    def _setup_file_handler(self):
        """Attach a file handler for today's log file."""
        today = datetime.now().strftime("%Y-%m-%d")
        self.log_file = self.log_dir / f"audit_{today}.log"

        file_handler = logging.FileHandler(self.log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog renders

        root_logger = logging.getLogger()
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.INFO)

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log an audit event.

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secrets)
            user_context: Overrides the default OS user context

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        self.logger.info(
            "audit_event",
            event_id=event_id,
            event_type=event_type.value,
            severity=severity.value,
            message=message,
            timestamp=datetime.now(timezone.utc).isoformat(),
            details=details or {},
            user_context=user_context or self._get_default_user_context(),
        )

        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> str:
        """Log an INFO-level vault event prefixed with 'Vault: '."""
        return self.log_event(
            event_type=event_type,
            severity=EventSeverity.INFO,
            message=f"Vault: {message}",
            details=details
        )

    def _get_default_user_context(self) -> Dict[str, Any]:
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (created on first use)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def log_security_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """
    Convenience function for logging audit events.

    Usage:
        log_security_event(
            EventType.AUTH_UNLOCK_FAILED,
            EventSeverity.INVESTIGATE,
            "Master password rejected",
        )
    """
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
