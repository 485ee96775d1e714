#!/usr/bin/env python3
"""
UENVSYNC SETTINGS
-----------------
Resolves where the local and remote uEnv.txt live and how to reach the
device. Precedence, lowest first: built-in defaults, the YAML settings file,
REMOTE_HOST / REMOTE_USER from the environment, explicit CLI overrides.

Author: uenvsync maintainers
Date: 2026-10-19
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from uenvsync.core.errors import SettingsError

logger = logging.getLogger("uenvsync.settings")

DEFAULT_SETTINGS_FILE = "uenvsync.yaml"

# Environment variable -> Settings field
ENV_OVERRIDES = {
    "REMOTE_HOST": "remote_host",
    "REMOTE_USER": "remote_user",
}

# `tail -n +0` and `ConnectTimeout=0` have no sane meaning
POSITIVE_SETTINGS = ("backup_keep", "connect_timeout")


@dataclass(frozen=True)
class Settings:
    """Connection and file locations for one sync session."""
    remote_host: str = "192.168.0.98"
    remote_user: str = "root"
    local_path: str = "./uEnv.txt"
    remote_path: str = "/boot/uEnv.txt"
    backup_keep: int = 10
    connect_timeout: int = 5

    def __post_init__(self):
        for name in POSITIVE_SETTINGS:
            value = getattr(self, name)
            if value < 1:
                raise SettingsError(f"Setting '{name}' must be at least 1, got {value}")

    @property
    def target(self) -> str:
        """The `user@host` string handed to ssh."""
        return f"{self.remote_user}@{self.remote_host}"

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Returns a copy with every non-None override applied."""
        applied = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **applied) if applied else self


def _coerce(values: Mapping[str, Any], source: str) -> Dict[str, Any]:
    """Validates keys and types against the Settings dataclass."""
    known = {f.name: f for f in fields(Settings)}
    coerced: Dict[str, Any] = {}
    for key, value in values.items():
        if key not in known:
            raise SettingsError(f"Unknown setting '{key}' in {source}")
        default = getattr(Settings, key)
        try:
            coerced[key] = int(value) if isinstance(default, int) else str(value)
        except (TypeError, ValueError):
            raise SettingsError(f"Setting '{key}' in {source} must be an integer, got {value!r}")
    return coerced


def load_settings_file(path: Path) -> Dict[str, Any]:
    """Reads a YAML mapping of settings. A missing file yields no overrides."""
    if not path.exists():
        return {}

    yaml = YAML(typ='safe')
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.load(f)
    except (OSError, YAMLError) as e:
        raise SettingsError(f"Unable to read settings from {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")

    logger.debug(f"Loaded settings from {path}")
    return _coerce(data, str(path))


def load_settings(config_path: Optional[str] = None,
                  environ: Optional[Mapping[str, str]] = None,
                  **overrides: Any) -> Settings:
    """
    Builds the effective Settings.

    `config_path` defaults to ./uenvsync.yaml; an explicitly requested file
    must exist.
    """
    env = os.environ if environ is None else environ

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise SettingsError(f"Settings file not found: {path}")
    else:
        path = Path(DEFAULT_SETTINGS_FILE)

    settings = Settings(**load_settings_file(path))

    env_values = {field: env[name] for name, field in ENV_OVERRIDES.items() if env.get(name)}
    settings = settings.with_overrides(**env_values)

    return settings.with_overrides(**overrides)
