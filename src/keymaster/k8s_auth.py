"""Reconcile policies onto Kubernetes auth roles.

Each (cluster, role) pair has one auth role in the cluster's ``k8s-<name>``
auth mount. Its policy list behaves as an insertion-ordered set: adding a
name already present changes nothing, removing keeps the others in place.

Every operation is a fresh read-modify-write against Vault. Two callers
updating the same auth role at once can lose an update; serialize writes per
(cluster, role) if that can happen.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from keymaster.backends import BackendError, VaultBackend
from keymaster.exceptions import TransportError
from keymaster.logger import Logger, create_logger
from keymaster.models import AuthRoleConfig, Cluster, Realm, Role, VaultPolicy
from keymaster.naming import k8s_auth_path


def merge_policy_names(names: Sequence[str], name: str) -> List[str]:
    """Append ``name`` unless it is already present."""
    merged = list(names)
    if name not in merged:
        merged.append(name)
    return merged


def remove_policy_name(names: Sequence[str], name: str) -> List[str]:
    """Drop ``name`` (exact match), keeping the remaining order."""
    return [n for n in names if n != name]


class K8sAuthReconciler:
    """Read, write and reconcile Kubernetes auth role bindings."""

    def __init__(self, backend: VaultBackend, logger: Optional[Logger] = None) -> None:
        self.backend = backend
        self.logger = logger or create_logger(name="keymaster-k8s-auth")

    def _transport_error(
        self, operation: str, path: str, role: Role, error: BackendError
    ) -> TransportError:
        self.logger.error(
            f"Auth role {operation} failed", path=path, role=role.name, error=str(error)
        )
        return TransportError(
            f"auth role {operation} request failed for {path}: {error}",
            details={"operation": operation, "path": path, "role": role.name},
        )

    def read_binding(
        self, cluster: Cluster, role: Role, timeout: Optional[float] = None
    ) -> AuthRoleConfig:
        """Fetch the auth role for ``role`` on ``cluster``.

        A missing auth role reads as the default (empty) configuration.

        Raises:
            TransportError: On backend failure
            DecodeError: If a token field holds a value that does not parse
        """
        path = k8s_auth_path(cluster, role)
        try:
            data = self.backend.read(path, timeout=timeout)
        except BackendError as e:
            raise self._transport_error("read", path, role, e) from e

        self.logger.debug("Auth role read", path=path, found=data is not None)
        return AuthRoleConfig.from_dict(data)

    def write_binding(
        self,
        cluster: Cluster,
        role: Role,
        realm: Realm,
        policy_names: Sequence[str],
        timeout: Optional[float] = None,
    ) -> AuthRoleConfig:
        """Replace the auth role's configuration.

        Service account names and namespaces both come from the realm's
        principals, CIDRs from the cluster. Token settings are written with
        their defaults.

        Raises:
            TransportError: On backend failure
        """
        path = k8s_auth_path(cluster, role)
        config = AuthRoleConfig(
            bound_cidrs=list(cluster.bound_cidrs),
            bound_service_account_names=list(realm.principals),
            bound_service_account_namespaces=list(realm.principals),
            policies=list(policy_names),
            token_bound_cidrs=list(cluster.bound_cidrs),
        )

        try:
            self.backend.write(path, config.to_dict(), timeout=timeout)
        except BackendError as e:
            raise self._transport_error("write", path, role, e) from e

        self.logger.info(
            "Auth role written", path=path, cluster=cluster.name, policies=config.policies
        )
        return config

    def add_policy(
        self,
        cluster: Cluster,
        role: Role,
        realm: Realm,
        policy: VaultPolicy,
        timeout: Optional[float] = None,
    ) -> AuthRoleConfig:
        """Attach ``policy.name`` to the auth role, appending if new.

        Raises:
            TransportError: If the read or the write fails. Nothing is
                written when the read fails.
            DecodeError: If the current binding does not parse. Nothing is
                written.
        """
        current = self.read_binding(cluster, role, timeout=timeout)
        names = merge_policy_names(current.policies, policy.name)
        return self.write_binding(cluster, role, realm, names, timeout=timeout)

    def remove_policy(
        self,
        cluster: Cluster,
        role: Role,
        realm: Realm,
        policy: VaultPolicy,
        timeout: Optional[float] = None,
    ) -> AuthRoleConfig:
        """Detach ``policy.name`` from the auth role if present.

        Raises:
            TransportError: If the read or the write fails. Nothing is
                written when the read fails.
            DecodeError: If the current binding does not parse. Nothing is
                written.
        """
        current = self.read_binding(cluster, role, timeout=timeout)
        names = remove_policy_name(current.policies, policy.name)
        return self.write_binding(cluster, role, realm, names, timeout=timeout)

    def delete_binding(
        self, cluster: Cluster, role: Role, timeout: Optional[float] = None
    ) -> None:
        """Remove the auth role entirely.

        Raises:
            TransportError: On backend failure
        """
        path = k8s_auth_path(cluster, role)
        try:
            self.backend.delete(path, timeout=timeout)
        except BackendError as e:
            raise self._transport_error("delete", path, role, e) from e

        self.logger.info("Auth role deleted", path=path)
