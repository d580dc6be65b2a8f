"""In-memory Vault backend for testing.

Mimics the parts of Vault's behaviour the policy store and auth reconciler
depend on:

- ``sys/policy/<name>`` writes take a base64 ``policy`` and read back as
  ``{"name": ..., "rules": <decoded text>}``
- ``auth/<mount>/role/<name>`` reads report token issuance defaults and a few
  extra fields Vault always returns
"""

from __future__ import annotations

import base64
import binascii
import copy
import fnmatch
from typing import Any, Callable, Dict, List, Optional, Tuple

from keymaster.models import TOKEN_DEFAULTS

from .base import BackendError

# Fields Vault adds to every kubernetes auth role read
_AUTH_ROLE_EXTRAS: Dict[str, Any] = {
    "alias_name_source": "serviceaccount_uid",
    "audience": "",
    "max_ttl": 0,
    "num_uses": 0,
    "period": 0,
    "ttl": 0,
}


class MemoryVaultBackend:
    """Dict-backed stand-in for a Vault server.

    Stored and returned documents are deep copies, so callers can never
    mutate backend state in place. ``fail_on`` injects a ``BackendError`` for
    matching operations, which lets tests exercise transport failures.

    Example:
        backend = MemoryVaultBackend()
        backend.write("sys/policy/x", {"policy": encoded})
        backend.read("sys/policy/x")  # {"name": "x", "rules": "..."}
    """

    def __init__(self) -> None:
        self._store: Dict[str, Dict[str, Any]] = {}
        self._failures: List[Tuple[str, str, Callable[[], Exception]]] = []
        self.calls: List[Tuple[str, str]] = []

    def fail_on(
        self,
        operation: str,
        pattern: str = "*",
        error: Optional[Callable[[], Exception]] = None,
    ) -> None:
        """Make ``operation`` ("read", "write", "delete") fail for paths matching ``pattern``."""
        self._failures.append(
            (operation, pattern, error or (lambda: BackendError("backend unavailable")))
        )

    def clear_failures(self) -> None:
        self._failures.clear()

    def _check(self, operation: str, path: str) -> None:
        self.calls.append((operation, path))
        for op, pattern, error in self._failures:
            if op == operation and fnmatch.fnmatch(path, pattern):
                raise error()

    def read(self, path: str, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        self._check("read", path)
        data = self._store.get(path)
        if data is None:
            return None

        if _is_auth_role(path):
            result = dict(_AUTH_ROLE_EXTRAS)
            result.update(TOKEN_DEFAULTS)
            result.update(data)
            return copy.deepcopy(result)

        return copy.deepcopy(data)

    def write(self, path: str, data: Dict[str, Any], timeout: Optional[float] = None) -> None:
        self._check("write", path)
        if path.startswith("sys/policy/"):
            self._store[path] = {
                "name": path.rsplit("/", 1)[-1],
                "rules": _decode_policy(data.get("policy", "")),
            }
            return
        self._store[path] = copy.deepcopy(data)

    def delete(self, path: str, timeout: Optional[float] = None) -> None:
        self._check("delete", path)
        self._store.pop(path, None)

    def put_raw(self, path: str, data: Dict[str, Any]) -> None:
        """Store a document verbatim, bypassing any Vault emulation."""
        self._store[path] = copy.deepcopy(data)

    def exists(self, path: str) -> bool:
        return path in self._store

    def clear(self) -> None:
        self._store.clear()
        self.calls.clear()

    def __len__(self) -> int:
        return len(self._store)


def _is_auth_role(path: str) -> bool:
    parts = path.split("/")
    return len(parts) >= 4 and parts[0] == "auth" and parts[-2] == "role"


def _decode_policy(policy: str) -> str:
    # Vault accepts either raw policy text or its base64 encoding
    try:
        return base64.b64decode(policy, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return policy
