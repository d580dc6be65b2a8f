"""Keymaster - Vault policy and auth binding management for team roles.

This package provides:
- models: roles, secrets, realms, clusters, policies, auth role configs
- naming: deterministic policy names and Vault paths
- policy: read-only policy payloads and the Vault policy store
- k8s_auth: idempotent policy attach/detach on Kubernetes auth roles
- backends: the Vault backend protocol, an hvac client and an in-memory fake
- logger, config, exceptions: logging, settings and structured errors
"""

__version__ = "1.0.0"

from keymaster.backends import MemoryVaultBackend, VaultBackend, VaultClient
from keymaster.config import Settings, VaultSettings, get_settings, reset_settings
from keymaster.exceptions import (
    ConfigurationError,
    DecodeError,
    InvalidInputError,
    KeymasterError,
    TransportError,
)
from keymaster.k8s_auth import K8sAuthReconciler
from keymaster.keymaster import KeyMaster
from keymaster.logger import Logger, create_logger, get_logger
from keymaster.models import (
    AlphaGenerator,
    AuthRoleConfig,
    Cluster,
    Environment,
    HexGenerator,
    Realm,
    Role,
    Secret,
    UUIDGenerator,
    VaultPolicy,
)
from keymaster.naming import k8s_auth_path, policy_name, policy_path, secret_path
from keymaster.policy import PolicyStore, make_policy_payload, new_policy

__all__ = [
    "__version__",
    # Facade
    "KeyMaster",
    # Models
    "Environment",
    "Role",
    "Secret",
    "Realm",
    "Cluster",
    "VaultPolicy",
    "AuthRoleConfig",
    "AlphaGenerator",
    "HexGenerator",
    "UUIDGenerator",
    # Naming
    "policy_name",
    "policy_path",
    "secret_path",
    "k8s_auth_path",
    # Policies
    "make_policy_payload",
    "new_policy",
    "PolicyStore",
    # Auth
    "K8sAuthReconciler",
    # Backends
    "VaultBackend",
    "VaultClient",
    "MemoryVaultBackend",
    # Config
    "Settings",
    "VaultSettings",
    "get_settings",
    "reset_settings",
    # Logger
    "Logger",
    "create_logger",
    "get_logger",
    # Exceptions
    "KeymasterError",
    "InvalidInputError",
    "TransportError",
    "DecodeError",
    "ConfigurationError",
]
