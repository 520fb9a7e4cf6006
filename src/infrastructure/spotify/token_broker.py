"""Client-credentials token broker for the Spotify Web API."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import requests

from config import Config
from src.domain.errors import InternalError
from src.observability.metrics import record_token_refresh

logger = logging.getLogger(__name__)


class TokenUnavailableError(InternalError):
    default_message = "Failed to get app token"


class TokenBroker:
    """Owns the cached app token and refreshes it shortly before it expires.

    The broker also satisfies spotipy's auth-manager protocol
    (``get_access_token(as_dict=False)``), so it can be handed straight to
    ``spotipy.Spotify(auth_manager=...)``.

    Concurrent refreshes are harmless: each one fetches a valid token and the
    last writer wins.
    """

    def __init__(self, client_id: Optional[str] = None,
                 client_secret: Optional[str] = None,
                 token_url: Optional[str] = None,
                 expiry_margin_seconds: Optional[int] = None,
                 timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time):
        self._client_id = client_id if client_id is not None else Config.SPOTIFY_CLIENT_ID
        self._client_secret = client_secret if client_secret is not None else Config.SPOTIFY_CLIENT_SECRET
        self._token_url = token_url or Config.SPOTIFY_TOKEN_URL
        self._margin = Config.SPOTIFY_TOKEN_EXPIRY_MARGIN_SECONDS if expiry_margin_seconds is None else expiry_margin_seconds
        self._timeout = timeout or Config.HTTP_TIMEOUT_SECONDS
        self._session = session or requests.Session()
        self._clock = clock
        self._lock = threading.RLock()
        self._token: Optional[str] = None
        self._expires_at = 0.0

    @property
    def has_credentials(self) -> bool:
        return bool(self._client_id and self._client_secret)

    @property
    def expires_at(self) -> float:
        return self._expires_at

    def is_expired(self) -> bool:
        with self._lock:
            return not self._token or self._clock() >= self._expires_at

    def refresh_if_expired(self) -> str:
        """Return the cached token, fetching a new one when it has expired."""
        with self._lock:
            if self._token and self._clock() < self._expires_at:
                return self._token
        token, expires_at = self._fetch_token()
        with self._lock:
            self._token = token
            self._expires_at = expires_at
        return token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0

    def get_access_token(self, as_dict: bool = False):
        token = self.refresh_if_expired()
        if as_dict:
            return {"access_token": token, "token_type": "Bearer", "expires_at": int(self._expires_at)}
        return token

    def _fetch_token(self):
        if not self.has_credentials:
            raise TokenUnavailableError("Missing SPOTIFY_CLIENT_ID or SPOTIFY_CLIENT_SECRET env vars")

        requested_at = self._clock()
        try:
            response = self._session.post(
                self._token_url,
                data={"grant_type": "client_credentials"},
                auth=(self._client_id, self._client_secret),
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as exc:
            record_token_refresh("error")
            logger.error("Spotify token request failed: %s", exc, exc_info=True)
            raise TokenUnavailableError() from exc

        if not response.ok:
            record_token_refresh("error")
            logger.error("Spotify token error (%s): %s", response.status_code, response.text)
            raise TokenUnavailableError()

        payload = response.json()
        token = payload.get("access_token")
        if not token:
            record_token_refresh("error")
            logger.error("Spotify token response did not include an access_token.")
            raise TokenUnavailableError()

        expires_in = int(payload.get("expires_in") or 0)
        record_token_refresh("success")
        logger.info("Fetched new Spotify app token (expires in %ss).", expires_in)
        return token, requested_at + max(0, expires_in - self._margin)


__all__ = ["TokenBroker", "TokenUnavailableError"]
