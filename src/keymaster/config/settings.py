"""Dataclass-based settings for Keymaster.

Settings are read through ``EnvLoader`` so a ``.env`` file, the process
environment and explicit overrides all feed the same typed objects. Every
``from_env`` accepts a prefix (default ``KEYMASTER``).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from keymaster.exceptions import ConfigurationError

from .env_loader import EnvLoader

DEFAULT_PREFIX = "KEYMASTER"

EnvSource = Optional[Union[str, Path]]


def _section(
    prefix: str, env_file: EnvSource, overrides: Optional[Mapping[str, str]]
) -> Mapping[str, str]:
    return EnvLoader(env_file).section(prefix, overrides)


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


@dataclass
class VaultSettings:
    """Connection settings for the Vault server.

    Supports two authentication methods:
    1. Token authentication: set ``token``
    2. AppRole authentication: set both ``role_id`` and ``secret_id``

    Attributes:
        url: Vault server URL (e.g., "https://vault.example.com:8200")
        token: Vault token for token-based authentication
        role_id: AppRole role ID
        secret_id: AppRole secret ID
        approle_mount: Mount point of the AppRole auth method
        namespace: Vault namespace (Vault Enterprise)
        timeout: Default request timeout in seconds
        verify_ssl: Whether to verify SSL certificates
    """

    url: str
    token: Optional[str] = None
    role_id: Optional[str] = None
    secret_id: Optional[str] = None
    approle_mount: str = "approle"
    namespace: Optional[str] = None
    timeout: int = 30
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        self.url = self.url.rstrip("/")

    @classmethod
    def from_env(
        cls,
        prefix: str = DEFAULT_PREFIX,
        env_file: EnvSource = None,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> "VaultSettings":
        """Load Vault settings from the environment.

        Environment variables:
            {prefix}_VAULT_URL: Vault server URL (required)
            {prefix}_VAULT_TOKEN: Vault token
            {prefix}_VAULT_ROLE_ID: AppRole role ID
            {prefix}_VAULT_SECRET_ID: AppRole secret ID
            {prefix}_VAULT_APPROLE_MOUNT: AppRole mount (default: "approle")
            {prefix}_VAULT_NAMESPACE: Vault namespace
            {prefix}_VAULT_TIMEOUT: Request timeout in seconds (default: 30)
            {prefix}_VAULT_VERIFY_SSL: SSL verification (default: "true")

        Raises:
            ConfigurationError: If the URL is missing or the timeout is not an integer
        """
        prefix = prefix.upper().replace("-", "_")
        env = _section(prefix, env_file, overrides)

        url = env.get("VAULT_URL")
        if not url:
            raise ConfigurationError(
                f"Missing required environment variable: {prefix}_VAULT_URL",
                details={"field": f"{prefix}_VAULT_URL"},
            )

        timeout_str = env.get("VAULT_TIMEOUT", "30")
        try:
            timeout = int(timeout_str)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid {prefix}_VAULT_TIMEOUT: {timeout_str!r}",
                details={"field": f"{prefix}_VAULT_TIMEOUT"},
            ) from e

        return cls(
            url=url,
            token=env.get("VAULT_TOKEN") or None,
            role_id=env.get("VAULT_ROLE_ID") or None,
            secret_id=env.get("VAULT_SECRET_ID") or None,
            approle_mount=env.get("VAULT_APPROLE_MOUNT", "approle"),
            namespace=env.get("VAULT_NAMESPACE") or None,
            timeout=timeout,
            verify_ssl=_as_bool(env.get("VAULT_VERIFY_SSL", "true")),
        )

    def validate(self) -> None:
        """Validate settings are complete and usable.

        Raises:
            ConfigurationError: If settings are invalid
        """
        if not self.url:
            raise ConfigurationError("Vault URL is required", details={"field": "url"})

        if not self.url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Vault URL must start with http:// or https://, got: {self.url}",
                details={"field": "url"},
            )

        has_token = bool(self.token)
        has_approle = bool(self.role_id and self.secret_id)

        if bool(self.role_id) != bool(self.secret_id):
            raise ConfigurationError(
                "AppRole auth requires both 'role_id' and 'secret_id'",
                details={"field": "role_id" if not self.role_id else "secret_id"},
            )

        if not has_token and not has_approle:
            raise ConfigurationError(
                "Must provide either 'token' or both 'role_id' and 'secret_id' for authentication"
            )

        if has_token and has_approle:
            raise ConfigurationError(
                "Provide either 'token' or 'role_id/secret_id', not both"
            )

        if self.timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be positive, got: {self.timeout}",
                details={"field": "timeout"},
            )

    @property
    def auth_method(self) -> str:
        """Return "token" or "approle"."""
        if self.token:
            return "token"
        return "approle"


@dataclass
class LogSettings:
    """Logging configuration

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit JSON log lines instead of text
        log_file: Optional file to mirror log output to
    """

    level: str = "INFO"
    json_format: bool = False
    log_file: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        prefix: str = DEFAULT_PREFIX,
        env_file: EnvSource = None,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> "LogSettings":
        """Load logging settings.

        Environment variables:
            {prefix}_LOG_LEVEL: Logging level
            {prefix}_LOG_JSON: "true" for JSON output
            {prefix}_LOG_FILE: Log file path
        """
        env = _section(prefix, env_file, overrides)
        return cls(
            level=env.get("LOG_LEVEL", "INFO").upper(),
            json_format=_as_bool(env.get("LOG_JSON", "false")),
            log_file=env.get("LOG_FILE") or None,
        )

    @property
    def level_number(self) -> int:
        return getattr(logging, self.level, logging.INFO)


@dataclass
class Settings:
    """Complete Keymaster settings.

    Attributes:
        vault: Vault connection settings
        log: Logging settings
        prefix: Environment variable prefix used
    """

    vault: VaultSettings
    log: LogSettings = field(default_factory=LogSettings)
    prefix: str = DEFAULT_PREFIX

    @classmethod
    def from_env(
        cls,
        prefix: str = DEFAULT_PREFIX,
        env_file: EnvSource = None,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        return cls(
            vault=VaultSettings.from_env(prefix, env_file, overrides),
            log=LogSettings.from_env(prefix, env_file, overrides),
            prefix=prefix,
        )

    def validate(self) -> None:
        self.vault.validate()


# Cached settings per prefix
_global_settings: dict[str, Settings] = {}


def get_settings(prefix: str = DEFAULT_PREFIX, reload: bool = False) -> Settings:
    """Get or create the validated settings for a prefix.

    Args:
        prefix: Environment variable prefix
        reload: If True, re-read the environment

    Raises:
        ConfigurationError: If the environment holds invalid settings
    """
    if prefix not in _global_settings or reload:
        settings = Settings.from_env(prefix=prefix)
        settings.validate()
        _global_settings[prefix] = settings

    return _global_settings[prefix]


def reset_settings(prefix: Optional[str] = None) -> None:
    """Reset cached settings (primarily for testing)."""
    if prefix:
        _global_settings.pop(prefix, None)
    else:
        _global_settings.clear()
