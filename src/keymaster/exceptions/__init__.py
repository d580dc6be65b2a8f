"""Keymaster exceptions.

Usage:
    from keymaster.exceptions import (
        KeymasterError,
        InvalidInputError,
        TransportError,
        DecodeError,
        ConfigurationError,
    )
"""

from keymaster.exceptions.base import (
    ConfigurationError,
    DecodeError,
    InvalidInputError,
    KeymasterError,
    TransportError,
)

__all__ = [
    "KeymasterError",
    "InvalidInputError",
    "TransportError",
    "DecodeError",
    "ConfigurationError",
]
