"""Data model for roles, secrets, realms, clusters, policies and auth bindings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from keymaster.exceptions import DecodeError, InvalidInputError


class Environment(IntEnum):
    """Deployment tier. ``UNSET`` is never valid for naming."""

    UNSET = 0
    DEVELOPMENT = 1
    STAGING = 2
    PRODUCTION = 3

    @property
    def token(self) -> str:
        """Name token used in policy names and secret mounts."""
        if self is Environment.UNSET:
            raise InvalidInputError(
                "unsupported environment", details={"field": "environment"}
            )
        return self.name.lower()

    @classmethod
    def parse(cls, value: Union["Environment", int, str, None]) -> "Environment":
        """Coerce a member, its integer value or its name token.

        Raises:
            InvalidInputError: If the value is unset or unknown
        """
        if isinstance(value, cls):
            env = value
        elif isinstance(value, int) and not isinstance(value, bool):
            try:
                env = cls(value)
            except ValueError:
                env = cls.UNSET
        elif isinstance(value, str):
            env = cls.__members__.get(value.strip().upper(), cls.UNSET)
        else:
            env = cls.UNSET

        if env is cls.UNSET:
            raise InvalidInputError(
                f"unsupported environment: {value!r}",
                details={"field": "environment", "value": value},
            )
        return env


# Secret value generators. Opaque here: only the owning secret's path matters.


@dataclass(frozen=True)
class AlphaGenerator:
    length: int = 32
    type: str = "alpha"


@dataclass(frozen=True)
class HexGenerator:
    length: int = 32
    type: str = "hex"


@dataclass(frozen=True)
class UUIDGenerator:
    type: str = "uuid"


Generator = Union[AlphaGenerator, HexGenerator, UUIDGenerator]

GENERATORS = {
    "alpha": AlphaGenerator,
    "hex": HexGenerator,
    "uuid": UUIDGenerator,
}


def generator_from_dict(data: Dict[str, Any]) -> Generator:
    """Build a generator from a ``{"type": ..., ...}`` mapping.

    Raises:
        InvalidInputError: If the type is missing or unknown
    """
    gen_type = data.get("type")
    gen_cls = GENERATORS.get(gen_type) if isinstance(gen_type, str) else None
    if gen_cls is None:
        raise InvalidInputError(
            f"unknown generator type: {gen_type!r}",
            details={"field": "generator.type", "value": gen_type},
        )
    if gen_cls is UUIDGenerator:
        return UUIDGenerator()
    return gen_cls(length=int(data.get("length", 32)))


@dataclass(frozen=True)
class Secret:
    """A named credential owned by a team."""

    name: str
    team: str
    generator: Optional[Generator] = None

    @property
    def namespace(self) -> str:
        return self.team


@dataclass(frozen=True)
class Realm:
    """An auth binding descriptor.

    For ``k8s`` realms the identifiers are the names of the clusters the realm
    applies to and the principals are the service accounts trusted there. A
    principal is bound both as a service account name and as the namespace it
    lives in, so ``default`` means the ``default`` account of ``default``.
    """

    type: str
    identifiers: Tuple[str, ...] = ()
    principals: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifiers", tuple(self.identifiers))
        object.__setattr__(self, "principals", tuple(self.principals))

    def applies_to(self, cluster: "Cluster") -> bool:
        return cluster.name in self.identifiers


@dataclass(frozen=True)
class Role:
    """An application identity owning secrets and eligible for policy grants."""

    name: str
    team: str
    secrets: Tuple[Secret, ...] = ()
    realms: Tuple[Realm, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "secrets", tuple(self.secrets))
        object.__setattr__(self, "realms", tuple(self.realms))

    @property
    def namespace(self) -> str:
        return self.team

    def realms_of_type(self, realm_type: str) -> List[Realm]:
        return [r for r in self.realms if r.type == realm_type]


@dataclass(frozen=True)
class Cluster:
    """A Kubernetes cluster with its own auth mount in Vault."""

    name: str
    api_server: str = ""
    ca_cert: str = ""
    bound_cidrs: Tuple[str, ...] = ()
    environment: Environment = Environment.UNSET

    def __post_init__(self) -> None:
        object.__setattr__(self, "bound_cidrs", tuple(self.bound_cidrs))


@dataclass
class VaultPolicy:
    """A named, path-scoped access-control document.

    ``VaultPolicy()`` (all fields empty) is what a read returns for a policy
    that does not exist.
    """

    name: str = ""
    path: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.path or self.payload)

    @property
    def paths(self) -> Dict[str, Any]:
        return self.payload.get("path", {})


# Token issuance defaults Vault reports for a k8s auth role
TOKEN_DEFAULTS: Dict[str, Any] = {
    "token_explicit_max_ttl": 0,
    "token_max_ttl": 0,
    "token_no_default_policy": False,
    "token_num_uses": 0,
    "token_period": 0,
    "token_ttl": 0,
    "token_type": "default",
}


@dataclass
class AuthRoleConfig:
    """Persisted configuration of a Kubernetes auth role.

    ``policies`` and ``token_policies`` are kept identical; ``to_dict`` emits
    the same list under both keys.
    """

    bound_cidrs: List[str] = field(default_factory=list)
    bound_service_account_names: List[str] = field(default_factory=list)
    bound_service_account_namespaces: List[str] = field(default_factory=list)
    policies: List[str] = field(default_factory=list)
    token_bound_cidrs: List[str] = field(default_factory=list)
    token_explicit_max_ttl: int = 0
    token_max_ttl: int = 0
    token_no_default_policy: bool = False
    token_num_uses: int = 0
    token_period: int = 0
    token_ttl: int = 0
    token_type: str = "default"

    @property
    def token_policies(self) -> List[str]:
        return list(self.policies)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AuthRoleConfig":
        """Normalize backend data to the fixed field set.

        Unknown fields are dropped and missing ones take their defaults.
        Numeric and flag fields that do not parse raise DecodeError.
        ``policies`` falls back to ``token_policies`` when only the latter is
        present.
        """
        if not data:
            return cls()

        policies = data.get("policies") or data.get("token_policies") or []
        return cls(
            bound_cidrs=_str_list(data.get("bound_cidrs")),
            bound_service_account_names=_str_list(data.get("bound_service_account_names")),
            bound_service_account_namespaces=_str_list(
                data.get("bound_service_account_namespaces")
            ),
            policies=_str_list(policies),
            token_bound_cidrs=_str_list(data.get("token_bound_cidrs")),
            token_explicit_max_ttl=_int(data, "token_explicit_max_ttl"),
            token_max_ttl=_int(data, "token_max_ttl"),
            token_no_default_policy=_bool(data, "token_no_default_policy"),
            token_num_uses=_int(data, "token_num_uses"),
            token_period=_int(data, "token_period"),
            token_ttl=_int(data, "token_ttl"),
            token_type=data.get("token_type") or "default",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bound_cidrs": list(self.bound_cidrs),
            "bound_service_account_names": list(self.bound_service_account_names),
            "bound_service_account_namespaces": list(self.bound_service_account_namespaces),
            "policies": list(self.policies),
            "token_bound_cidrs": list(self.token_bound_cidrs),
            "token_explicit_max_ttl": self.token_explicit_max_ttl,
            "token_max_ttl": self.token_max_ttl,
            "token_no_default_policy": self.token_no_default_policy,
            "token_num_uses": self.token_num_uses,
            "token_period": self.token_period,
            "token_policies": list(self.policies),
            "token_ttl": self.token_ttl,
            "token_type": self.token_type,
        }


_TRUE = ("true", "1", "yes")
_FALSE = ("false", "0", "no")


def _str_list(value: Optional[Sequence[Any]]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        # Vault accepts comma-separated strings for list fields
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value]


def _undecodable(field_name: str, value: Any, expected: str) -> DecodeError:
    return DecodeError(
        f"auth role field {field_name!r} is not {expected}: {value!r}",
        details={"field": field_name, "value": value},
    )


def _int(data: Dict[str, Any], field_name: str) -> int:
    value = data.get(field_name)
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise _undecodable(field_name, value, "an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise _undecodable(field_name, value, "an integer") from e


def _bool(data: Dict[str, Any], field_name: str) -> bool:
    value = data.get(field_name)
    if value is None or value == "":
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE + _FALSE:
        return value.strip().lower() in _TRUE
    raise _undecodable(field_name, value, "a boolean")
