"""Vault access policies for roles.

A role's policy grants ``read`` on each secret it owns plus on the policy
itself, so a role can inspect its own grants. Nothing else is ever granted:
no write/delete/list capability and no wildcard paths.

Example payload (keys are Vault paths)::

    {
      "path": {
        "development/data/core-services/foo": {"capabilities": ["read"]},
        "sys/policy/core-services-app1-development": {"capabilities": ["read"]}
      }
    }
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, Optional

from keymaster.backends import BackendError, VaultBackend
from keymaster.exceptions import DecodeError, InvalidInputError, TransportError
from keymaster.logger import Logger, create_logger
from keymaster.models import Role, VaultPolicy
from keymaster.naming import EnvLike, policy_name, policy_path, secret_path

READ_ONLY = ("read",)


def _grant() -> Dict[str, Any]:
    return {"capabilities": list(READ_ONLY)}


def make_policy_payload(role: Role, env: EnvLike) -> Dict[str, Any]:
    """Build the read-only access document for a role.

    Raises:
        InvalidInputError: If any secret path or the role's own policy path
            cannot be derived. No partial payload is returned.
    """
    paths: Dict[str, Any] = {}

    for secret in role.secrets:
        try:
            path = secret_path(secret.name, secret.namespace, env)
        except InvalidInputError as e:
            raise InvalidInputError(
                f"failed to create secret path for {secret.name!r} role {role.name!r}: {e.message}",
                details={**e.details, "role": role.name, "secret": secret.name},
            ) from e
        paths[path] = _grant()

    try:
        own_path = policy_path(role.name, role.namespace, env)
    except InvalidInputError as e:
        raise InvalidInputError(
            f"failed to create policy path for role {role.name!r}: {e.message}",
            details={**e.details, "role": role.name},
        ) from e
    paths[own_path] = _grant()

    return {"path": paths}


def new_policy(role: Role, env: EnvLike) -> VaultPolicy:
    """Compose name, path and payload for a role. No network access.

    Raises:
        InvalidInputError: If any part cannot be derived
    """
    payload = make_policy_payload(role, env)
    return VaultPolicy(
        name=policy_name(role.name, role.namespace, env),
        path=policy_path(role.name, role.namespace, env),
        payload=payload,
    )


def encode_policy(payload: Dict[str, Any]) -> str:
    """Serialize a payload the way Vault's policy endpoint accepts it."""
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def decode_rules(rules: str) -> Dict[str, Any]:
    """Parse the ``rules`` text Vault returns for a JSON policy.

    The text is parsed as-is first. Only when that fails is it retried with
    backslash escaping removed, so rules that are plain JSON keep any
    backslashes or quotes inside their paths.

    Raises:
        DecodeError: If the rules are not a JSON object
    """
    try:
        payload = json.loads(rules)
    except json.JSONDecodeError:
        try:
            payload = json.loads(rules.replace("\\", ""))
        except json.JSONDecodeError as e:
            raise DecodeError(
                f"failed to unmarshal policy rules: {e}",
                details={"error": str(e), "rules": rules},
            ) from e

    if not isinstance(payload, dict):
        raise DecodeError(
            "policy rules are not a JSON object",
            details={"rules": rules},
        )
    return payload


class PolicyStore:
    """Reads, writes and deletes role policies in Vault.

    Every call goes straight to the backend; nothing is cached. Backend
    failures surface as TransportError with the operation and path in
    ``details``.

    Example:
        store = PolicyStore(MemoryVaultBackend())
        store.write_policy(new_policy(role, Environment.DEVELOPMENT))
        policy = store.read_policy("sys/policy/core-services-app1-development")
    """

    def __init__(self, backend: VaultBackend, logger: Optional[Logger] = None) -> None:
        self.backend = backend
        self.logger = logger or create_logger(name="keymaster-policy")

    def _transport_error(self, operation: str, path: str, error: BackendError) -> TransportError:
        self.logger.error(f"Policy {operation} failed", path=path, error=str(error))
        return TransportError(
            f"policy {operation} request failed for {path}: {error}",
            details={"operation": operation, "path": path},
        )

    def write_policy(self, policy: VaultPolicy, timeout: Optional[float] = None) -> None:
        """Upsert a policy at its path.

        If the call times out the write may or may not have been applied;
        read the policy back to find out.

        Raises:
            TransportError: On backend failure
        """
        body = {"policy": encode_policy(policy.payload)}
        try:
            self.backend.write(policy.path, body, timeout=timeout)
        except BackendError as e:
            raise self._transport_error("write", policy.path, e) from e

        self.logger.info("Policy written", policy=policy.name, path=policy.path)

    def read_policy(self, path: str, timeout: Optional[float] = None) -> VaultPolicy:
        """Fetch a policy and decode its rules.

        Returns:
            The stored policy, or an empty ``VaultPolicy()`` if nothing is
            stored at ``path``

        Raises:
            TransportError: On backend failure
            DecodeError: If the stored rules are not valid JSON
        """
        try:
            data = self.backend.read(path, timeout=timeout)
        except BackendError as e:
            raise self._transport_error("read", path, e) from e

        if not data:
            self.logger.debug("Policy not found", path=path)
            return VaultPolicy()

        rules = data.get("rules")
        if not isinstance(rules, str):
            self.logger.debug("Policy has no rules", path=path)
            return VaultPolicy()

        name = data.get("name")
        return VaultPolicy(
            name=name if isinstance(name, str) else "",
            path=path,
            payload=decode_rules(rules),
        )

    def delete_policy(self, path: str, timeout: Optional[float] = None) -> None:
        """Delete a policy.

        Auth roles that still list the policy by name are left alone; detach
        it from them first.

        Raises:
            TransportError: On backend failure
        """
        try:
            self.backend.delete(path, timeout=timeout)
        except BackendError as e:
            raise self._transport_error("delete", path, e) from e

        self.logger.info("Policy deleted", path=path)
