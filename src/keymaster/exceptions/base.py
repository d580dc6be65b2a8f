"""Base exception classes for Keymaster.

All Keymaster exceptions carry structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Context such as the offending field, operation or path
"""

from typing import Any, Dict, Optional


class KeymasterError(Exception):
    """Base exception for all Keymaster errors.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_INPUT")
        message: Human-readable error message
        details: Optional additional context for debugging/recovery
    """

    default_code = "KEYMASTER_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize error with structured information.

        Args:
            message: Human-readable error message
            code: Error code (defaults to the class default_code)
            details: Optional additional context
        """
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(KeymasterError):
    """Malformed or missing identity/environment fields.

    Raised by name/path derivation and payload construction. Never worth
    retrying; ``details["field"]`` names the offending input.
    """

    default_code = "INVALID_INPUT"


class TransportError(KeymasterError):
    """Any failure talking to the Vault backend.

    ``details`` carries the ``operation`` and ``path`` that failed and the
    original backend exception is chained as ``__cause__``. Safe to retry for
    the idempotent operations as long as no other writer races on the same
    binding.
    """

    default_code = "TRANSPORT_ERROR"


class DecodeError(KeymasterError):
    """The backend returned data that is not the expected structured document."""

    default_code = "DECODE_ERROR"


class ConfigurationError(KeymasterError):
    """Configuration is invalid or incomplete."""

    default_code = "CONFIGURATION_ERROR"
