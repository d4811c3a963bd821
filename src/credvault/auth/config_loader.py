# Auth - Identity Service Config Loader
#
# Plain KEY=VALUE file, searched in order:
#   1. ./.supabase.config
#   2. $HOME/.config/credvault/.supabase.config
#
# Blank lines and '#' comments are ignored. A line must contain exactly one
# '=' to count; anything else is skipped.

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv.parser import parse_stream

from ..core import paths
from ..core.errors import ConfigurationMissing

logger = logging.getLogger(__name__)

URL_KEY = "SUPABASE_URL"
API_KEY_KEY = "SUPABASE_ANON_KEY"


def find_config_file(cwd: Optional[Path] = None) -> Path:
    """Locate the identity service config file.

    Raises:
        ConfigurationMissing: not in the working directory nor the user
            config directory.
    """
    local = (cwd or Path.cwd()) / paths.IDENTITY_CONFIG_FILE
    if local.is_file():
        return local

    if os.environ.get("HOME"):
        home_config = paths.config_dir() / paths.IDENTITY_CONFIG_FILE
        if home_config.is_file():
            return home_config

    raise ConfigurationMissing(
        f"Identity service config file not found. Please create {paths.IDENTITY_CONFIG_FILE}"
    )


def load_config(config_path: Union[str, Path]) -> Dict[str, str]:
    """Parse a KEY=VALUE file into a dict.

    The one-'=' rule applies per line: a bad line is dropped on its own and
    never clobbers an earlier valid line for the same key.

    Raises:
        ConfigurationMissing: the file cannot be read.
    """
    path = Path(config_path)
    if not path.is_file():
        raise ConfigurationMissing(f"Config file not found: {path}")

    config: Dict[str, str] = {}
    try:
        with open(path, encoding="utf-8") as stream:
            for binding in parse_stream(stream):
                if binding.key is None:
                    continue
                # A bare "KEY" line has no value; "A=B=C" keeps "B=C" as one.
                if binding.value is None or "=" in binding.value:
                    logger.debug("Skipping config line %d", binding.original.line)
                    continue
                config[binding.key.strip()] = binding.value.strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationMissing(f"Config file unreadable: {path}: {exc}") from exc
    return config


def _require(config: Dict[str, str], key: str) -> str:
    value = config.get(key)
    if not value:
        raise ConfigurationMissing(f"{key} not configured")
    return value


def get_identity_url(config_path: Optional[Union[str, Path]] = None) -> str:
    config = load_config(config_path or find_config_file())
    return _require(config, URL_KEY)


def get_identity_key(config_path: Optional[Union[str, Path]] = None) -> str:
    config = load_config(config_path or find_config_file())
    return _require(config, API_KEY_KEY)
