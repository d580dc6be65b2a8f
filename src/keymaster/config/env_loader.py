"""Environment loader with optional .env support.

Values are merged in this order, later sources winning:
1) the .env file (``env_file`` if given, else ``./.env``)
2) OS environment variables
3) explicit overrides

``section`` narrows the merged view to one prefix, so ``KEYMASTER_VAULT_URL``
becomes ``VAULT_URL`` for ``section("KEYMASTER")``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values


class EnvLoader:
    """Merge .env, process environment and overrides into one mapping."""

    def __init__(self, env_file: Optional[Path | str] = None) -> None:
        self.env_file = Path(env_file) if env_file else None

    def load(self, overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        data: Dict[str, str] = {}

        env_path = self.env_file or Path.cwd() / ".env"
        if env_path.is_file():
            data.update(
                {k: v for k, v in dotenv_values(env_path).items() if v is not None}
            )

        data.update(os.environ)

        if overrides:
            data.update({k: str(v) for k, v in overrides.items()})

        return data

    def section(
        self, prefix: str, overrides: Optional[Mapping[str, str]] = None
    ) -> Dict[str, str]:
        """Keys under ``{PREFIX}_`` with the prefix stripped.

        The prefix is upper-cased and dashes become underscores, so
        ``"keymaster-dev"`` selects ``KEYMASTER_DEV_*``.
        """
        head = prefix.upper().replace("-", "_") + "_"
        return {
            k[len(head):]: v
            for k, v in self.load(overrides).items()
            if k.startswith(head) and len(k) > len(head)
        }


__all__ = ["EnvLoader"]
