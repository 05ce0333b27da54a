from __future__ import annotations

import logging
import math
import threading
import weakref
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union
from urllib.parse import quote, urlencode

import requests
from flask import current_app

from .token_store import TokenStore


logger = logging.getLogger(__name__)

# Fraction of the declared token lifetime an access token stays cached.
ACCESS_TOKEN_TTL_RATIO = 0.75


@dataclass
class TokenSet:
    """Tokens returned by a successful grant."""

    access_token: str
    refresh_token: Optional[str]
    expires_in: int
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class ProviderError:
    """Failure talking to the provider.

    ``raw`` holds the parsed error body when the provider sent one.
    """

    message: str
    raw: Optional[dict[str, Any]] = None
    status_code: Optional[int] = None


ExchangeResult = Union[TokenSet, ProviderError]


def error_from_response(response: requests.Response) -> ProviderError:
    """Build a ProviderError out of a non-2xx provider response."""

    try:
        body = response.json()
    except ValueError:
        body = None

    message = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error_description") or body.get("error")
    else:
        body = None
    if not message:
        message = response.text or f"HTTP {response.status_code}"
    return ProviderError(message=str(message), raw=body, status_code=response.status_code)


def access_token_ttl(expires_in: int) -> int:
    return math.floor(expires_in * ACCESS_TOKEN_TTL_RATIO)


class TokenExchangeClient:
    """Trades authorization codes and refresh tokens at the provider's token endpoint.

    Every successful exchange updates the token store: the refresh token
    (when the provider returns one) and the access token, cached for 75% of
    its declared lifetime.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        store: TokenStore,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.client_id = config["CLIENT_ID"]
        self.client_secret = config["CLIENT_SECRET"]
        self.redirect_uri = config["REDIRECT_URI"]
        self.scope = config["SCOPE"]
        self.authorize_url = config["AUTHORIZE_URL"]
        self.token_url = config["TOKEN_URL"]
        self.timeout = config.get("HTTP_TIMEOUT", 10)
        self.store = store
        self.http = http or requests.Session()

        self._locks_guard = threading.Lock()
        # Locks live only while some request holds or waits on them.
        self._refresh_locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )

    def build_authorize_url(self) -> str:
        query = urlencode(
            {
                "client_id": self.client_id,
                "scope": self.scope,
                "redirect_uri": self.redirect_uri,
            },
            safe="",
            quote_via=quote,
        )
        return f"{self.authorize_url}?{query}"

    def build_auth_code_proof(self, code: str) -> dict[str, str]:
        return {
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "code": code,
        }

    def build_refresh_proof(self, refresh_token: str) -> dict[str, str]:
        return {
            "grant_type": "refresh_token",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "refresh_token": refresh_token,
        }

    def exchange_for_tokens(self, session_id: str, proof: Mapping[str, str]) -> ExchangeResult:
        """POST ``proof`` to the token endpoint and cache the resulting tokens.

        Transport failures, non-2xx responses and malformed bodies come back
        as a ``ProviderError`` instead of being raised.
        """

        grant_type = proof.get("grant_type")
        try:
            response = self.http.post(self.token_url, data=dict(proof), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Error exchanging %s for access token: %s", grant_type, exc)
            return ProviderError(message=str(exc))

        if not response.ok:
            error = error_from_response(response)
            logger.error(
                "Error exchanging %s for access token (status=%s): %s",
                grant_type,
                response.status_code,
                error.message,
            )
            return error

        try:
            payload = response.json()
            tokens = TokenSet(
                access_token=payload["access_token"],
                refresh_token=payload.get("refresh_token"),
                expires_in=int(payload.get("expires_in", 0)),
                raw=payload,
            )
        except (ValueError, KeyError, TypeError) as exc:
            logger.error(
                "Error exchanging %s for access token: malformed response (%s)",
                grant_type,
                exc,
            )
            return ProviderError(
                message="Malformed token response from provider",
                status_code=response.status_code,
            )

        if tokens.refresh_token:
            self.store.save_refresh_token(session_id, tokens.refresh_token)
        elif self.store.get_refresh_token(session_id) is None:
            # An access token is only cached alongside a refresh token.
            logger.error(
                "Error exchanging %s for access token: provider returned no refresh token",
                grant_type,
            )
            return ProviderError(
                message="Provider returned no refresh token",
                raw=payload,
                status_code=response.status_code,
            )
        self.store.save_access_token(
            session_id, tokens.access_token, access_token_ttl(tokens.expires_in)
        )
        logger.info(
            "Exchanged %s for tokens (expires_in=%s, has_refresh=%s)",
            grant_type,
            tokens.expires_in,
            bool(tokens.refresh_token),
        )
        return tokens

    def refresh_access_token(self, session_id: str) -> Optional[ExchangeResult]:
        refresh_token = self.store.get_refresh_token(session_id)
        if not refresh_token:
            logger.info("No refresh token stored for this session; skipping refresh")
            return None
        return self.exchange_for_tokens(session_id, self.build_refresh_proof(refresh_token))

    def get_access_token(self, session_id: str) -> Optional[str]:
        """Return a cached access token, refreshing it once on a cache miss.

        Concurrent misses for the same session share a single refresh: the
        first caller performs the exchange and the others pick up its result
        from the cache. May still return ``None`` when the refresh fails.
        """

        token = self.store.get_access_token(session_id)
        if token:
            return token

        with self._refresh_lock(session_id):
            # Another request may have refreshed while we waited.
            token = self.store.get_access_token(session_id)
            if token:
                return token
            logger.info("Refreshing expired access token")
            self.refresh_access_token(session_id)
            return self.store.get_access_token(session_id)

    def is_authorized(self, session_id: str) -> bool:
        return self.store.get_refresh_token(session_id) is not None

    def _refresh_lock(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._refresh_locks.get(session_id)
            if lock is None:
                lock = self._refresh_locks[session_id] = threading.Lock()
            return lock


def get_oauth_client() -> TokenExchangeClient:
    """The exchange client bound to the current application."""
    return current_app.extensions["oauth_client"]
