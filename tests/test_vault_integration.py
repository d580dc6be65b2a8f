"""Integration tests against a real Vault dev server.

Skipped unless a Vault answers at KEYMASTER_VAULT_URL. The token needs rights
on sys/policy and sys/auth.

Vault setup (dev mode):
    vault server -dev -dev-root-token-id=keymaster-dev-root-token
"""

import os
from uuid import uuid4

import pytest

from keymaster import (
    Cluster,
    Environment,
    KeyMaster,
    Realm,
    Role,
    Secret,
    VaultClient,
    VaultSettings,
)

pytestmark = pytest.mark.vault_integration


def _settings() -> VaultSettings:
    return VaultSettings(
        url=os.environ.get("KEYMASTER_VAULT_URL", "http://127.0.0.1:8200"),
        token=os.environ.get("KEYMASTER_VAULT_TOKEN", "keymaster-dev-root-token"),
        timeout=5,
    )


def vault_available() -> bool:
    try:
        return VaultClient(_settings()).health_check()
    except Exception:
        return False


@pytest.fixture
def vault_client() -> VaultClient:
    if not vault_available():
        pytest.skip("Vault not available")
    return VaultClient(_settings())


@pytest.fixture
def cluster(vault_client: VaultClient):
    """Mount a throwaway kubernetes auth method for one test."""
    name = f"it{uuid4().hex[:8]}"
    hvac_client = vault_client._client
    hvac_client.sys.enable_auth_method(method_type="kubernetes", path=f"k8s-{name}")
    hvac_client.write_data(
        f"auth/k8s-{name}/config",
        data={"kubernetes_host": "https://127.0.0.1:6443"},
    )
    yield Cluster(name=name, bound_cidrs=["127.0.0.1/32"])
    hvac_client.sys.disable_auth_method(path=f"k8s-{name}")


def test_k8s_auth_crud(vault_client, cluster):
    km = KeyMaster(vault_client)
    realm = Realm(type="k8s", identifiers=[cluster.name], principals=["default"])
    app1 = Role(
        name=f"app1{uuid4().hex[:6]}",
        team="core-services",
        secrets=[Secret(name="foo", team="core-services")],
        realms=[realm],
    )
    app2 = Role(name="app2", team="core-services", secrets=[Secret(name="bar", team="core-services")])

    policy = km.provision_role(app1, Environment.DEVELOPMENT, [cluster])
    added = km.new_policy(app2, Environment.DEVELOPMENT)
    try:
        assert km.read_policy(policy.path).payload == policy.payload

        binding = km.read_k8s_auth(cluster, app1)
        assert binding.policies == [policy.name]
        assert binding.token_policies == [policy.name]
        assert binding.token_ttl == 0
        assert binding.token_type == "default"

        km.add_policy_to_k8s_role(cluster, app1, realm, added)
        assert km.read_k8s_auth(cluster, app1).policies == [policy.name, added.name]

        km.remove_policy_from_k8s_role(cluster, app1, realm, added)
        assert km.read_k8s_auth(cluster, app1).policies == [policy.name]
    finally:
        km.deprovision_role(app1, Environment.DEVELOPMENT, [cluster])

    assert km.read_policy(policy.path).is_empty
