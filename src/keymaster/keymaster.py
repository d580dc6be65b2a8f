"""KeyMaster: one object tying naming, policies and auth bindings together."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from keymaster.backends import VaultBackend, VaultClient
from keymaster.config import DEFAULT_PREFIX, Settings
from keymaster.k8s_auth import K8sAuthReconciler
from keymaster.logger import Logger, create_logger
from keymaster.models import AuthRoleConfig, Cluster, Realm, Role, VaultPolicy
from keymaster.naming import EnvLike, k8s_auth_path, policy_name, policy_path, secret_path
from keymaster.policy import PolicyStore, make_policy_payload, new_policy

K8S_REALM = "k8s"


class KeyMaster:
    """Manage role policies and their Kubernetes auth bindings in Vault.

    Example:
        km = KeyMaster(MemoryVaultBackend())
        policy = km.provision_role(role, Environment.DEVELOPMENT, [cluster])
        km.read_k8s_auth(cluster, role).policies
        # ['core-services-app1-development']
    """

    def __init__(self, backend: VaultBackend, logger: Optional[Logger] = None) -> None:
        self.backend = backend
        self.logger = logger or create_logger(name="keymaster")
        self.policies = PolicyStore(backend, logger=self.logger)
        self.k8s_auth = K8sAuthReconciler(backend, logger=self.logger)

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_PREFIX) -> "KeyMaster":
        """Connect to the Vault described by ``{prefix}_VAULT_*`` variables.

        Raises:
            ConfigurationError: If the settings are invalid
        """
        settings = Settings.from_env(prefix)
        settings.validate()
        logger = create_logger(
            name="keymaster",
            level=settings.log.level_number,
            log_file=settings.log.log_file,
            json_format=settings.log.json_format,
        )
        return cls(VaultClient(settings.vault, logger=logger), logger=logger)

    # Naming

    def policy_name(self, role: str, namespace: str, env: EnvLike) -> str:
        return policy_name(role, namespace, env)

    def policy_path(self, role: str, namespace: str, env: EnvLike) -> str:
        return policy_path(role, namespace, env)

    def secret_path(self, secret: str, namespace: str, env: EnvLike) -> str:
        return secret_path(secret, namespace, env)

    def k8s_auth_path(self, cluster: Cluster, role: Role) -> str:
        return k8s_auth_path(cluster, role)

    # Policies

    def make_policy_payload(self, role: Role, env: EnvLike) -> Dict[str, Any]:
        return make_policy_payload(role, env)

    def new_policy(self, role: Role, env: EnvLike) -> VaultPolicy:
        return new_policy(role, env)

    def write_policy(self, policy: VaultPolicy, timeout: Optional[float] = None) -> None:
        self.policies.write_policy(policy, timeout=timeout)

    def read_policy(self, path: str, timeout: Optional[float] = None) -> VaultPolicy:
        return self.policies.read_policy(path, timeout=timeout)

    def delete_policy(self, path: str, timeout: Optional[float] = None) -> None:
        self.policies.delete_policy(path, timeout=timeout)

    # Kubernetes auth

    def read_k8s_auth(
        self, cluster: Cluster, role: Role, timeout: Optional[float] = None
    ) -> AuthRoleConfig:
        return self.k8s_auth.read_binding(cluster, role, timeout=timeout)

    def write_k8s_auth(
        self,
        cluster: Cluster,
        role: Role,
        realm: Realm,
        policy_names: Sequence[str],
        timeout: Optional[float] = None,
    ) -> AuthRoleConfig:
        return self.k8s_auth.write_binding(cluster, role, realm, policy_names, timeout=timeout)

    def add_policy_to_k8s_role(
        self,
        cluster: Cluster,
        role: Role,
        realm: Realm,
        policy: VaultPolicy,
        timeout: Optional[float] = None,
    ) -> AuthRoleConfig:
        return self.k8s_auth.add_policy(cluster, role, realm, policy, timeout=timeout)

    def remove_policy_from_k8s_role(
        self,
        cluster: Cluster,
        role: Role,
        realm: Realm,
        policy: VaultPolicy,
        timeout: Optional[float] = None,
    ) -> AuthRoleConfig:
        return self.k8s_auth.remove_policy(cluster, role, realm, policy, timeout=timeout)

    # Whole-role workflows

    def provision_role(
        self,
        role: Role,
        env: EnvLike,
        clusters: Iterable[Cluster],
        timeout: Optional[float] = None,
    ) -> VaultPolicy:
        """Write the role's policy and attach it to its k8s realm bindings.

        A realm is bound on each given cluster named in its identifiers;
        other clusters are skipped.

        Raises:
            InvalidInputError: Before any network call, if the policy cannot be built
            TransportError: On the first backend failure; earlier steps stay applied
        """
        policy = new_policy(role, env)
        self.write_policy(policy, timeout=timeout)

        for cluster in clusters:
            for realm in role.realms_of_type(K8S_REALM):
                if realm.applies_to(cluster):
                    self.add_policy_to_k8s_role(cluster, role, realm, policy, timeout=timeout)

        self.logger.info("Role provisioned", role=role.name, policy=policy.name)
        return policy

    def deprovision_role(
        self,
        role: Role,
        env: EnvLike,
        clusters: Iterable[Cluster],
        timeout: Optional[float] = None,
    ) -> VaultPolicy:
        """Detach the role's policy from its k8s realm bindings, then delete it.

        Bindings are visited the same way ``provision_role`` visits them.
        """
        policy = new_policy(role, env)

        for cluster in clusters:
            for realm in role.realms_of_type(K8S_REALM):
                if realm.applies_to(cluster):
                    self.remove_policy_from_k8s_role(cluster, role, realm, policy, timeout=timeout)

        self.delete_policy(policy.path, timeout=timeout)
        self.logger.info("Role deprovisioned", role=role.name, policy=policy.name)
        return policy
