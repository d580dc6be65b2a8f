"""Tests for keymaster.models."""

import dataclasses

import pytest

from keymaster import (
    AlphaGenerator,
    AuthRoleConfig,
    Cluster,
    DecodeError,
    Environment,
    InvalidInputError,
    Realm,
    Role,
    Secret,
    UUIDGenerator,
    VaultPolicy,
)
from keymaster.models import HexGenerator, generator_from_dict


class TestEnvironment:
    """Tests for Environment."""

    def test_unset_is_zero(self):
        assert Environment.UNSET == 0

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Environment.STAGING, Environment.STAGING),
            (3, Environment.PRODUCTION),
            ("development", Environment.DEVELOPMENT),
            (" Staging ", Environment.STAGING),
        ],
    )
    def test_parse(self, value, expected):
        assert Environment.parse(value) is expected

    @pytest.mark.parametrize("value", [0, Environment.UNSET, "unset", "prod", 7, True, None, 1.0])
    def test_parse_rejects(self, value):
        with pytest.raises(InvalidInputError):
            Environment.parse(value)

    def test_token(self):
        assert Environment.PRODUCTION.token == "production"

    def test_unset_has_no_token(self):
        with pytest.raises(InvalidInputError):
            Environment.UNSET.token


class TestGenerators:
    """Generators are opaque data."""

    def test_from_dict(self):
        assert generator_from_dict({"type": "alpha", "length": 10}) == AlphaGenerator(length=10)
        assert generator_from_dict({"type": "hex"}) == HexGenerator()
        assert generator_from_dict({"type": "uuid"}) == UUIDGenerator()

    def test_unknown_type(self):
        with pytest.raises(InvalidInputError) as exc_info:
            generator_from_dict({"type": "rsa"})
        assert exc_info.value.details["field"] == "generator.type"


class TestRole:
    """Tests for Role, Secret and Realm."""

    def test_namespace_is_team(self):
        role = Role(name="app1", team="core-services")
        assert role.namespace == "core-services"
        assert Secret(name="foo", team="core-platform").namespace == "core-platform"

    def test_sequences_become_tuples(self):
        role = Role(
            name="app1",
            team="core",
            secrets=[Secret(name="foo", team="core")],
            realms=[Realm(type="k8s", identifiers=["a"], principals=["b"])],
        )
        assert isinstance(role.secrets, tuple)
        assert role.realms[0].identifiers == ("a",)

    def test_immutable(self):
        role = Role(name="app1", team="core")
        with pytest.raises(dataclasses.FrozenInstanceError):
            role.name = "app2"  # type: ignore[misc]

    def test_realms_of_type(self):
        k8s = Realm(type="k8s")
        aws = Realm(type="aws")
        role = Role(name="app1", team="core", realms=[k8s, aws])
        assert role.realms_of_type("k8s") == [k8s]

    def test_realm_applies_to_named_clusters(self):
        realm = Realm(type="k8s", identifiers=["bravo"], principals=["default"])
        assert realm.applies_to(Cluster(name="bravo"))
        assert not realm.applies_to(Cluster(name="charlie"))


class TestVaultPolicy:
    def test_empty(self):
        assert VaultPolicy().is_empty
        assert not VaultPolicy(name="x").is_empty

    def test_paths(self):
        policy = VaultPolicy(payload={"path": {"a": {"capabilities": ["read"]}}})
        assert list(policy.paths) == ["a"]


class TestAuthRoleConfig:
    """Tests for AuthRoleConfig normalization."""

    def test_defaults(self):
        data = AuthRoleConfig().to_dict()
        assert data["policies"] == data["token_policies"] == []
        assert data["token_type"] == "default"
        assert data["token_no_default_policy"] is False
        for key in ("token_ttl", "token_max_ttl", "token_explicit_max_ttl", "token_num_uses", "token_period"):
            assert data[key] == 0

    def test_from_none(self):
        assert AuthRoleConfig.from_dict(None) == AuthRoleConfig()

    def test_from_dict_drops_unknown_fields(self):
        config = AuthRoleConfig.from_dict({"policies": ["a"], "audience": "vault", "ttl": 5})
        assert "audience" not in config.to_dict()
        assert config.policies == ["a"]

    def test_token_policies_fallback(self):
        config = AuthRoleConfig.from_dict({"token_policies": ["a", "b"]})
        assert config.policies == ["a", "b"]
        assert config.token_policies == ["a", "b"]

    def test_comma_separated_lists(self):
        config = AuthRoleConfig.from_dict({"bound_service_account_names": "a, b"})
        assert config.bound_service_account_names == ["a", "b"]

    def test_numeric_strings(self):
        config = AuthRoleConfig.from_dict({"token_ttl": "3600", "token_period": None})
        assert config.token_ttl == 3600
        assert config.token_period == 0

    def test_non_integer_token_field(self):
        with pytest.raises(DecodeError) as exc_info:
            AuthRoleConfig.from_dict({"token_ttl": "1h"})

        assert exc_info.value.details == {"field": "token_ttl", "value": "1h"}
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_list_in_integer_field(self):
        with pytest.raises(DecodeError) as exc_info:
            AuthRoleConfig.from_dict({"token_num_uses": [1]})
        assert exc_info.value.details["field"] == "token_num_uses"

    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, True),
            (False, False),
            ("true", True),
            ("false", False),
            ("False", False),
            ("0", False),
            (1, True),
            (0, False),
            (None, False),
        ],
    )
    def test_no_default_policy_flag(self, value, expected):
        config = AuthRoleConfig.from_dict({"token_no_default_policy": value})
        assert config.token_no_default_policy is expected

    def test_unparseable_flag(self):
        with pytest.raises(DecodeError) as exc_info:
            AuthRoleConfig.from_dict({"token_no_default_policy": "maybe"})
        assert exc_info.value.details["field"] == "token_no_default_policy"

    def test_to_dict_copies_lists(self):
        config = AuthRoleConfig(policies=["a"])
        data = config.to_dict()
        data["policies"].append("b")
        data["token_policies"].append("c")
        assert config.policies == ["a"]
