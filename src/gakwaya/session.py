"""Session context and client-held auth token storage.

The API client never reads the token from global state; callers build a
Session (API URL + token) and hand it to ApiClient explicitly.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path

from .config import Config, get_config_dir, validate_api_url
from .constants import AUTH_FILE_MODE, AUTH_FILE_NAME, AUTH_TOKEN_KEY
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Session:
    """Connection context for one user against one backend."""

    api_url: str
    token: str | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def with_token(self, token: str | None) -> Session:
        """Return a copy of this session carrying a different token."""
        return replace(self, token=token)


class TokenStore:
    """JSON file holding the bearer token between CLI invocations."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else get_config_dir() / AUTH_FILE_NAME

    def load(self) -> str | None:
        """Return the stored token, or None when absent or unreadable."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable token file %s: %s", self.path, e)
            return None
        token = data.get(AUTH_TOKEN_KEY) if isinstance(data, dict) else None
        return token if isinstance(token, str) and token else None

    def save(self, token: str) -> None:
        """Persist the token, readable by the current user only."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({AUTH_TOKEN_KEY: token}), encoding="utf-8")
        os.chmod(self.path, AUTH_FILE_MODE)
        logger.debug("Stored auth token in %s", self.path)

    def clear(self) -> bool:
        """Remove the stored token.

        Returns:
            True if a token file was removed.
        """
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


def load_session(config: Config, store: TokenStore | None = None) -> Session:
    """Build a Session from configuration and the stored token.

    Raises:
        ConfigError: If the configured API URL is invalid.
    """
    store = store if store is not None else TokenStore()
    return Session(api_url=validate_api_url(config.api_url), token=store.load())
