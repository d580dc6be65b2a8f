"""Vault backend built on hvac.

Provides a thin wrapper around the hvac client with:
- Token and AppRole authentication
- Raw read/write/delete against any Vault API path (sys/policy, auth/...)
- Per-request timeouts
- Error mapping onto the BackendError hierarchy
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import hvac
from hvac.exceptions import Forbidden, InvalidPath, Unauthorized

from keymaster.logger import Logger, create_logger

from .base import BackendError

if TYPE_CHECKING:
    from keymaster.config import VaultSettings


class VaultError(BackendError):
    """Base exception for Vault operations."""
    pass


class VaultConnectionError(VaultError):
    """Raised when Vault cannot be reached or rejects a request."""
    pass


class VaultAuthenticationError(VaultError):
    """Raised when authentication to Vault fails."""
    pass


class VaultPermissionError(VaultError):
    """Raised when permission is denied for an operation."""
    pass


class VaultClient:
    """hvac-backed implementation of the VaultBackend protocol.

    Example:
        settings = VaultSettings(url="https://vault.example.com:8200", token="hvs.xxxxx")
        client = VaultClient(settings)

        client.write("sys/policy/demo", {"policy": encoded})
        client.read("auth/k8s-bravo/role/core-services-app1")
        client.delete("sys/policy/demo")
    """

    def __init__(
        self,
        settings: "VaultSettings",
        logger: Optional[Logger] = None,
    ) -> None:
        """Initialize the client and authenticate.

        Args:
            settings: VaultSettings with connection settings
            logger: Optional logger instance

        Raises:
            ConfigurationError: If settings are invalid
            VaultAuthenticationError: If AppRole login fails
        """
        self.settings = settings
        self.logger = logger or create_logger(name="keymaster-vault")

        settings.validate()

        self._client = self._new_hvac_client()
        if settings.auth_method == "approle":
            self._authenticate_approle()

        self.logger.debug(
            "VaultClient initialized",
            url=settings.url,
            auth_method=settings.auth_method,
        )

    def _new_hvac_client(self) -> hvac.Client:
        return hvac.Client(
            url=self.settings.url,
            token=self.settings.token if self.settings.auth_method == "token" else None,
            namespace=self.settings.namespace,
            verify=self.settings.verify_ssl,
            timeout=self.settings.timeout,
        )

    def _authenticate_approle(self) -> None:
        try:
            response = self._client.auth.approle.login(
                role_id=self.settings.role_id,
                secret_id=self.settings.secret_id,
                mount_point=self.settings.approle_mount,
            )
            self._client.token = response["auth"]["client_token"]
            self.logger.info("Authenticated to Vault via AppRole")
        except Exception as e:
            self.logger.error("AppRole authentication failed", error=str(e))
            raise VaultAuthenticationError(f"AppRole authentication failed: {e}") from e

    def is_authenticated(self) -> bool:
        try:
            return self._client.is_authenticated()
        except Exception:
            return False

    def health_check(self) -> bool:
        """Return True if Vault answers its health endpoint."""
        try:
            self._client.sys.read_health_status(method="GET")
            return True
        except Exception as e:
            self.logger.warning("Vault health check failed", error=str(e))
            return False

    def _request_kwargs(self, timeout: Optional[float]) -> Dict[str, Any]:
        return {"timeout": timeout} if timeout is not None else {}

    def read(self, path: str, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Read a path.

        Returns:
            The response ``data`` mapping, or None if not found

        Raises:
            VaultPermissionError: If permission denied
            VaultConnectionError: On any other failure
        """
        try:
            response = self._client.adapter.get(
                f"/v1/{path}", **self._request_kwargs(timeout)
            )
        except InvalidPath:
            self.logger.debug("Path not found", path=path)
            return None
        except (Forbidden, Unauthorized) as e:
            self.logger.error("Permission denied reading path", path=path)
            raise VaultPermissionError(f"Permission denied: {path}") from e
        except Exception as e:
            self.logger.error("Failed to read path", path=path, error=str(e))
            raise VaultConnectionError(f"Failed to read {path}: {e}") from e

        if isinstance(response, dict):
            return response.get("data")
        return None

    def write(self, path: str, data: Dict[str, Any], timeout: Optional[float] = None) -> None:
        """Upsert a document at a path.

        Raises:
            VaultPermissionError: If permission denied
            VaultConnectionError: On any other failure
        """
        try:
            self._client.adapter.put(
                f"/v1/{path}", json=data, **self._request_kwargs(timeout)
            )
            self.logger.debug("Path written", path=path)
        except (Forbidden, Unauthorized) as e:
            self.logger.error("Permission denied writing path", path=path)
            raise VaultPermissionError(f"Permission denied: {path}") from e
        except Exception as e:
            self.logger.error("Failed to write path", path=path, error=str(e))
            raise VaultConnectionError(f"Failed to write {path}: {e}") from e

    def delete(self, path: str, timeout: Optional[float] = None) -> None:
        """Delete a path. Deleting something absent is not an error.

        Raises:
            VaultPermissionError: If permission denied
            VaultConnectionError: On any other failure
        """
        try:
            self._client.adapter.delete(f"/v1/{path}", **self._request_kwargs(timeout))
            self.logger.debug("Path deleted", path=path)
        except InvalidPath:
            self.logger.debug("Path not found for deletion", path=path)
        except (Forbidden, Unauthorized) as e:
            self.logger.error("Permission denied deleting path", path=path)
            raise VaultPermissionError(f"Permission denied: {path}") from e
        except Exception as e:
            self.logger.error("Failed to delete path", path=path, error=str(e))
            raise VaultConnectionError(f"Failed to delete {path}: {e}") from e
