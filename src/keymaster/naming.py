"""Deterministic names and Vault paths derived from role metadata.

Every function here is pure: identical inputs always give identical strings.

Note: namespaces such as ``core-platform`` put hyphens inside policy names,
so a policy name cannot be split back into its inputs.
"""

from typing import Union

from keymaster.exceptions import InvalidInputError
from keymaster.models import Cluster, Environment, Role

EnvLike = Union[Environment, int, str]

POLICY_PREFIX = "sys/policy"


def _require(value: str, field_name: str, message: str) -> None:
    if not value:
        raise InvalidInputError(message, details={"field": field_name})


def policy_name(role: str, namespace: str, env: EnvLike) -> str:
    """Policy name for a role, e.g. ``core-services-app1-development``.

    Raises:
        InvalidInputError: If role or namespace is empty or env is unset
    """
    _require(role, "role", "empty role names are not supported")
    _require(namespace, "namespace", "empty role namespaces are not supported")
    environment = Environment.parse(env)

    return f"{namespace}-{role}-{environment.token}"


def policy_path(role: str, namespace: str, env: EnvLike) -> str:
    """Vault path of a role's policy, e.g. ``sys/policy/core-services-app1-development``."""
    return f"{POLICY_PREFIX}/{policy_name(role, namespace, env)}"


def secret_path(secret: str, namespace: str, env: EnvLike) -> str:
    """KV v2 data path of a secret in its environment's mount.

    e.g. ``development/data/core-services/foo``

    Raises:
        InvalidInputError: If secret or namespace is empty or env is unset
    """
    _require(secret, "secret", "empty secret names are not supported")
    _require(namespace, "namespace", "empty secret namespaces are not supported")
    environment = Environment.parse(env)

    return f"{environment.token}/data/{namespace}/{secret}"


def k8s_auth_path(cluster: Cluster, role: Role) -> str:
    """Path of a role's auth role in a cluster's Kubernetes auth mount.

    e.g. ``auth/k8s-bravo/role/core-services-app1``
    """
    _require(cluster.name, "cluster", "empty cluster names are not supported")
    _require(role.name, "role", "empty role names are not supported")
    _require(role.namespace, "namespace", "empty role namespaces are not supported")

    return f"auth/k8s-{cluster.name}/role/{role.namespace}-{role.name}"
