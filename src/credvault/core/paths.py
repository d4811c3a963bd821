# Core - Per-user file locations
#
# All persistent state lives under $HOME/.config/credvault/:
#   auth.json          master-password record
#   passwords.db       credential vault
#   .supabase.config   identity service settings (optional)

import os
from pathlib import Path

from .errors import ConfigurationMissing

APP_DIR_NAME = "credvault"
AUTH_RECORD_FILE = "auth.json"
VAULT_DB_FILE = "passwords.db"
IDENTITY_CONFIG_FILE = ".supabase.config"

# Owner-only, matches what the record store writes.
CONFIG_DIR_MODE = 0o700


def config_dir() -> Path:
    """Return $HOME/.config/credvault (not created).

    Raises:
        ConfigurationMissing: HOME is unset or empty.
    """
    home = os.environ.get("HOME")
    if not home:
        raise ConfigurationMissing("HOME environment variable not set")
    return Path(home) / ".config" / APP_DIR_NAME


def ensure_config_dir(path: Path) -> Path:
    """Create `path` (and parents) with owner-only permissions if missing."""
    path.mkdir(mode=CONFIG_DIR_MODE, parents=True, exist_ok=True)
    return path


def auth_record_path() -> Path:
    return config_dir() / AUTH_RECORD_FILE


def vault_db_path() -> Path:
    return config_dir() / VAULT_DB_FILE
