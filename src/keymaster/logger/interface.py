"""Logger interface for Keymaster components."""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Logging contract used by the policy store, reconciler and backends.

    Every method takes a message plus keyword context, e.g.
    ``logger.info("Policy written", path="sys/policy/x")``.
    """

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def get_session_id(self) -> str:
        """Return the identifier shared by every entry of this logger."""
        pass
