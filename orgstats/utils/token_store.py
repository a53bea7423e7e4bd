"""
Client-side token storage.
The aggregation core never reads this; front ends resolve a token from it and
pass the value into a run.
"""

import json
import os
from pathlib import Path
from typing import Optional, Protocol, Union

from orgstats.core.exceptions import ConfigurationError
from orgstats.core.logger import get_logger

logger = get_logger(__name__)


class TokenStore(Protocol):
    """Opaque storage for a single GitHub token."""

    def get(self) -> Optional[str]: ...

    def set(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Token store that lives only as long as the process."""

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = _normalize(token)

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """
    Token store backed by a small JSON file readable only by its owner.

    File layout: {"github_token": "<token>"}
    """

    KEY = "github_token"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def get(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f"Unreadable token store: {self.path}", details={"error": str(e)}
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Unreadable token store: {self.path}")
        token = data.get(self.KEY)
        if not isinstance(token, str):
            return None
        return token.strip() or None

    def set(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({self.KEY: _normalize(token)})

        # Create with owner-only permissions before writing the secret
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        logger.info("GitHub token saved", extra={"path": str(self.path)})

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("GitHub token cleared", extra={"path": str(self.path)})


def _normalize(token: str) -> str:
    token = (token or "").strip()
    if not token:
        raise ConfigurationError("Token must not be empty")
    return token
