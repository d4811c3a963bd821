"""
Shared pytest fixtures for the credvault test suite.

Autouse fixtures below isolate tests from the real user data:
  - Audit logger -> temp directory  (no test events in ./audit_logs)
  - HOME         -> temp directory  (no writes to ~/.config/credvault)
"""

import pytest


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Redirect the global AuditLogger to a temp directory for every test."""
    import credvault.core.audit_log as audit_mod

    # Reset the singleton so the next get_audit_logger() builds a fresh one.
    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    orig_init = audit_mod.AuditLogger.__init__

    def patched_init(self, log_dir=None):
        orig_init(self, log_dir=log_dir or tmp_path / "audit_logs")

    monkeypatch.setattr(audit_mod.AuditLogger, "__init__", patched_init)

    yield

    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _isolate_home(tmp_path, monkeypatch):
    """Point HOME at a temp directory so default paths stay in the sandbox."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def data_dir(tmp_path):
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture
def key():
    """A fixed 256-bit key for AEAD tests."""
    return bytes(range(32))
