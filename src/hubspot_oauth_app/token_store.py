from __future__ import annotations

import time
from typing import Callable, Optional


class TokenStore:
    """Abstract interface for storing tokens server-side, keyed by session id."""

    def save_refresh_token(self, session_id: str, token: str) -> None:
        raise NotImplementedError

    def get_refresh_token(self, session_id: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def save_access_token(self, session_id: str, token: str, ttl: float) -> None:
        raise NotImplementedError

    def get_access_token(self, session_id: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def access_token_ttl(self, session_id: str) -> Optional[float]:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryTokenStore(TokenStore):
    """Simple in-memory token store for development and testing.

    Refresh tokens live for the lifetime of the process. Access tokens are
    cached with an expiry and evicted on the first read after it passes.
    Nothing survives a restart, so this is not suitable for multi-process
    deployments.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._refresh_tokens: dict[str, str] = {}
        # session id -> (access token, expires at)
        self._access_tokens: dict[str, tuple[str, float]] = {}

    def save_refresh_token(self, session_id: str, token: str) -> None:
        self._refresh_tokens[session_id] = token

    def get_refresh_token(self, session_id: str) -> Optional[str]:
        return self._refresh_tokens.get(session_id)

    def save_access_token(self, session_id: str, token: str, ttl: float) -> None:
        if ttl <= 0:
            self._access_tokens.pop(session_id, None)
            return
        self._access_tokens[session_id] = (token, self._clock() + ttl)

    def get_access_token(self, session_id: str) -> Optional[str]:
        entry = self._access_tokens.get(session_id)
        if entry is None:
            return None
        token, expires_at = entry
        if self._clock() >= expires_at:
            self._access_tokens.pop(session_id, None)
            return None
        return token

    def access_token_ttl(self, session_id: str) -> Optional[float]:
        """Seconds left before the cached access token is evicted."""
        if self.get_access_token(session_id) is None:
            return None
        return self._access_tokens[session_id][1] - self._clock()
