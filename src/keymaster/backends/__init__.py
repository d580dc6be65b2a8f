"""Vault backends for Keymaster.

- VaultBackend - protocol the policy store and auth reconciler depend on
- MemoryVaultBackend - in-memory fake for tests and dry runs
- VaultClient - hvac-backed client for a real Vault server

Usage:
    from keymaster.backends import MemoryVaultBackend, VaultClient
    from keymaster.config import VaultSettings

    backend = MemoryVaultBackend()
    backend = VaultClient(VaultSettings.from_env())
"""

from .base import BackendError, VaultBackend
from .memory import MemoryVaultBackend
from .vault_client import (
    VaultAuthenticationError,
    VaultClient,
    VaultConnectionError,
    VaultError,
    VaultPermissionError,
)

__all__ = [
    # Protocol
    "VaultBackend",
    # Exceptions
    "BackendError",
    "VaultError",
    "VaultConnectionError",
    "VaultAuthenticationError",
    "VaultPermissionError",
    # Implementations
    "MemoryVaultBackend",
    "VaultClient",
]
