"""Backend protocol for Vault access.

The policy store and auth reconciler only ever need three calls against a
path. Any object with these methods is a valid backend (structural typing).
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable


class BackendError(Exception):
    """Base exception for backend failures."""
    pass


@runtime_checkable
class VaultBackend(Protocol):
    """Protocol for Vault backends.

    Example:
        class MyBackend:
            def read(self, path, timeout=None): ...
            def write(self, path, data, timeout=None): ...
            def delete(self, path, timeout=None): ...

        backend: VaultBackend = MyBackend()
    """

    def read(self, path: str, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Read the document stored at a path.

        Args:
            path: Vault API path (without the ``/v1/`` prefix)
            timeout: Optional per-request timeout in seconds

        Returns:
            The response ``data`` mapping, or None if nothing is stored
        """
        ...

    def write(self, path: str, data: Dict[str, Any], timeout: Optional[float] = None) -> None:
        """Upsert a document at a path."""
        ...

    def delete(self, path: str, timeout: Optional[float] = None) -> None:
        """Delete whatever is stored at a path."""
        ...
