"""Configuration for Keymaster.

Example:
    from keymaster.config import Settings, get_settings

    settings = get_settings()            # KEYMASTER_* variables
    settings = Settings.from_env("KM")   # KM_* variables
"""

from keymaster.config.env_loader import EnvLoader
from keymaster.config.settings import (
    DEFAULT_PREFIX,
    LogSettings,
    Settings,
    VaultSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "DEFAULT_PREFIX",
    "EnvLoader",
    "VaultSettings",
    "LogSettings",
    "Settings",
    "get_settings",
    "reset_settings",
]
