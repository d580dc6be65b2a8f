"""Shared fixtures for Keymaster tests."""

import pytest

from keymaster import (
    AlphaGenerator,
    Cluster,
    Environment,
    KeyMaster,
    MemoryVaultBackend,
    Realm,
    Role,
    Secret,
    UUIDGenerator,
)


@pytest.fixture
def backend() -> MemoryVaultBackend:
    """Create a fresh in-memory Vault."""
    return MemoryVaultBackend()


@pytest.fixture
def km(backend: MemoryVaultBackend) -> KeyMaster:
    return KeyMaster(backend)


@pytest.fixture
def bound_cidrs() -> tuple:
    return ("10.178.0.0/16", "10.179.0.0/16")


@pytest.fixture
def cluster(bound_cidrs: tuple) -> Cluster:
    return Cluster(
        name="bravo",
        api_server="https://bravo.example.com:6443",
        bound_cidrs=bound_cidrs,
        environment=Environment.DEVELOPMENT,
    )


@pytest.fixture
def realm() -> Realm:
    return Realm(type="k8s", identifiers=["bravo"], principals=["default"])


@pytest.fixture
def app1(realm: Realm) -> Role:
    return Role(
        name="app1",
        team="core-services",
        secrets=[Secret(name="foo", team="core-services", generator=AlphaGenerator(length=10))],
        realms=[realm],
    )


@pytest.fixture
def app2(realm: Realm) -> Role:
    return Role(
        name="app2",
        team="core-services",
        secrets=[
            Secret(name="bar", team="core-services", generator=AlphaGenerator(length=10)),
            Secret(name="baz", team="core-services", generator=UUIDGenerator()),
        ],
        realms=[realm],
    )
