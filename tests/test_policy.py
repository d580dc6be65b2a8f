"""Tests for policy payloads and the Vault policy store."""

import base64
import json

import pytest

from keymaster import (
    DecodeError,
    Environment,
    InvalidInputError,
    PolicyStore,
    Role,
    Secret,
    TransportError,
    VaultPolicy,
)
from keymaster.backends import BackendError
from keymaster.logger import Logger
from keymaster.policy import decode_rules, encode_policy, make_policy_payload, new_policy


class RecordingLogger(Logger):
    """Keeps (message, kwargs) pairs instead of emitting them."""

    def __init__(self):
        self.records = []

    def _record(self, message, **kwargs):
        self.records.append((message, kwargs))

    def debug(self, message, **kwargs):
        self._record(message, **kwargs)

    def info(self, message, **kwargs):
        self._record(message, **kwargs)

    def warning(self, message, **kwargs):
        self._record(message, **kwargs)

    def error(self, message, **kwargs):
        self._record(message, **kwargs)

    def get_session_id(self):
        return "test"


class TestMakePolicyPayload:
    """Tests for make_policy_payload()."""

    def test_paths_are_owned_secrets_plus_own_policy(self, app2):
        payload = make_policy_payload(app2, Environment.DEVELOPMENT)

        assert set(payload) == {"path"}
        assert set(payload["path"]) == {
            "development/data/core-services/bar",
            "development/data/core-services/baz",
            "sys/policy/core-services-app2-development",
        }

    def test_read_only(self, app2):
        payload = make_policy_payload(app2, Environment.PRODUCTION)

        for path, grant in payload["path"].items():
            assert grant == {"capabilities": ["read"]}
            assert "*" not in path
            assert "+" not in path

    def test_role_without_secrets_can_read_own_policy(self):
        payload = make_policy_payload(Role(name="app9", team="core"), Environment.STAGING)
        assert payload == {
            "path": {"sys/policy/core-app9-staging": {"capabilities": ["read"]}}
        }

    def test_secret_uses_its_own_team(self):
        role = Role(
            name="app1",
            team="core-services",
            secrets=[Secret(name="shared", team="core-platform")],
        )
        payload = make_policy_payload(role, Environment.DEVELOPMENT)
        assert "development/data/core-platform/shared" in payload["path"]

    def test_grants_are_independent_objects(self, app2):
        payload = make_policy_payload(app2, Environment.DEVELOPMENT)
        grants = list(payload["path"].values())
        grants[0]["capabilities"].append("write")
        assert grants[1]["capabilities"] == ["read"]

    def test_bad_secret_fails_whole_payload(self):
        role = Role(
            name="app1",
            team="core-services",
            secrets=[Secret(name="ok", team="core-services"), Secret(name="", team="core-services")],
        )
        with pytest.raises(InvalidInputError) as exc_info:
            make_policy_payload(role, Environment.DEVELOPMENT)

        assert exc_info.value.details["role"] == "app1"
        assert exc_info.value.details["field"] == "secret"
        assert isinstance(exc_info.value.__cause__, InvalidInputError)

    def test_unset_environment_fails(self, app1):
        with pytest.raises(InvalidInputError):
            make_policy_payload(app1, Environment.UNSET)


class TestNewPolicy:
    """Tests for new_policy()."""

    def test_composes_name_path_payload(self, app1):
        policy = new_policy(app1, Environment.DEVELOPMENT)

        assert policy.name == "core-services-app1-development"
        assert policy.path == "sys/policy/core-services-app1-development"
        assert policy.payload == make_policy_payload(app1, Environment.DEVELOPMENT)

    def test_independent_policies_are_name_identical(self, app1):
        twin = Role(name="app1", team="core-services", secrets=app1.secrets)
        assert new_policy(app1, "development").name == new_policy(twin, "development").name

    def test_empty_role_name_builds_nothing(self):
        with pytest.raises(InvalidInputError):
            new_policy(Role(name="", team="core-services"), Environment.DEVELOPMENT)

    def test_makes_no_backend_calls(self, app1, backend):
        new_policy(app1, Environment.DEVELOPMENT)
        assert backend.calls == []


class TestRulesCodec:
    """Tests for encode_policy() and decode_rules()."""

    def test_encoded_policy_is_base64_json(self):
        payload = {"path": {"a/b": {"capabilities": ["read"]}}}
        decoded = json.loads(base64.b64decode(encode_policy(payload)))
        assert decoded == payload

    def test_decode_strips_escaping(self):
        rules = '{\\"path\\": {\\"a/b\\": {\\"capabilities\\": [\\"read\\"]}}}'
        assert decode_rules(rules) == {"path": {"a/b": {"capabilities": ["read"]}}}

    def test_decode_keeps_backslashes_in_plain_json(self):
        payload = {"path": {"development/data/core/win\\path": {"capabilities": ["read"]}}}
        assert decode_rules(json.dumps(payload)) == payload

    def test_decode_keeps_quotes_in_plain_json(self):
        payload = {"path": {'development/data/core/say"hi': {"capabilities": ["read"]}}}
        assert decode_rules(json.dumps(payload)) == payload

    def test_decode_invalid_json(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_rules('path "secret/*" { capabilities = ["read"] }')
        assert exc_info.value.code == "DECODE_ERROR"
        assert "error" in exc_info.value.details

    def test_decode_non_object(self):
        with pytest.raises(DecodeError):
            decode_rules('["read"]')


class TestPolicyStore:
    """Tests for PolicyStore against the in-memory backend."""

    @pytest.fixture
    def store(self, backend):
        return PolicyStore(backend)

    def test_round_trip(self, store, app2):
        policy = new_policy(app2, Environment.DEVELOPMENT)
        store.write_policy(policy)

        read_back = store.read_policy(policy.path)

        assert read_back.payload == policy.payload
        assert read_back.name == policy.name
        assert read_back.path == policy.path

    def test_write_is_upsert(self, store, app1, backend):
        policy = new_policy(app1, Environment.DEVELOPMENT)
        store.write_policy(policy)
        store.write_policy(policy)

        assert store.read_policy(policy.path).payload == policy.payload
        assert len(backend) == 1

    def test_write_sends_base64_body(self, app1):
        written = {}

        class RecordingBackend:
            def read(self, path, timeout=None):
                return None

            def write(self, path, data, timeout=None):
                written[path] = (data, timeout)

            def delete(self, path, timeout=None):
                pass

        policy = new_policy(app1, Environment.DEVELOPMENT)
        PolicyStore(RecordingBackend()).write_policy(policy, timeout=2.5)

        body, timeout = written[policy.path]
        assert set(body) == {"policy"}
        assert json.loads(base64.b64decode(body["policy"])) == policy.payload
        assert timeout == 2.5

    def test_read_missing_is_empty_policy(self, store):
        policy = store.read_policy("sys/policy/does-not-exist")
        assert policy == VaultPolicy()
        assert policy.is_empty

    def test_read_without_rules_is_empty_policy(self, store, backend):
        backend.put_raw("sys/policy/odd", {"name": "odd"})
        assert store.read_policy("sys/policy/odd").is_empty

    def test_read_invalid_rules(self, store, backend):
        backend.put_raw("sys/policy/hcl", {"name": "hcl", "rules": 'path "x" {}'})
        with pytest.raises(DecodeError):
            store.read_policy("sys/policy/hcl")

    def test_delete(self, store, app1, backend):
        policy = new_policy(app1, Environment.DEVELOPMENT)
        store.write_policy(policy)

        store.delete_policy(policy.path)

        assert store.read_policy(policy.path).is_empty
        assert not backend.exists(policy.path)

    def test_delete_leaves_auth_roles_alone(self, store, km, app1, cluster, realm, backend):
        policy = new_policy(app1, Environment.DEVELOPMENT)
        store.write_policy(policy)
        km.write_k8s_auth(cluster, app1, realm, [policy.name])

        store.delete_policy(policy.path)

        assert km.read_k8s_auth(cluster, app1).policies == [policy.name]

    @pytest.mark.parametrize("operation", ["write", "read", "delete"])
    def test_backend_failure_is_transport_error(self, store, app1, backend, operation):
        policy = new_policy(app1, Environment.DEVELOPMENT)
        backend.fail_on(operation, "sys/policy/*")

        with pytest.raises(TransportError) as exc_info:
            if operation == "write":
                store.write_policy(policy)
            elif operation == "read":
                store.read_policy(policy.path)
            else:
                store.delete_policy(policy.path)

        assert exc_info.value.details == {"operation": operation, "path": policy.path}
        assert isinstance(exc_info.value.__cause__, BackendError)

    @pytest.mark.parametrize("secret_name", ["win\\path", 'say"hi', "tab\\tname"])
    def test_round_trip_special_characters(self, store, secret_name):
        role = Role(
            name="app1",
            team="core-services",
            secrets=[Secret(name=secret_name, team="core-services")],
        )
        policy = new_policy(role, Environment.DEVELOPMENT)
        store.write_policy(policy)

        read_back = store.read_policy(policy.path)

        assert read_back.payload == policy.payload
        assert f"development/data/core-services/{secret_name}" in read_back.paths

    def test_write_logs_policy_name(self, backend, app1):
        logger = RecordingLogger()
        policy = new_policy(app1, Environment.DEVELOPMENT)

        PolicyStore(backend, logger=logger).write_policy(policy)

        message, context = logger.records[-1]
        assert message == "Policy written"
        assert context["policy"] == policy.name
        assert "name" not in context
