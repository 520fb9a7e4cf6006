"""HTTP client the aggregation service uses to reach the Spotify proxy."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from config import Config
from src.domain.errors import InternalError, UpstreamError
from src.observability.metrics import record_upstream_call

logger = logging.getLogger(__name__)


class SpotifyProxyClient:
    """Calls the proxy endpoints and returns their JSON bodies.

    Non-2xx responses raise ``UpstreamError`` with the proxy's status code and
    raw body. Transport failures raise ``InternalError``. Nothing is retried.
    """

    def __init__(self, base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or Config.SPOTIFY_AUTH_BASE_URL).rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout or Config.HTTP_TIMEOUT_SECONDS

    def _get(self, endpoint: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        started = time.perf_counter()
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            record_upstream_call(endpoint, 'unreachable', time.perf_counter() - started)
            logger.error("Spotify proxy unreachable for %s: %s", url, exc)
            raise InternalError() from exc

        elapsed = time.perf_counter() - started
        if not response.ok:
            record_upstream_call(endpoint, 'error', elapsed)
            logger.error("Spotify proxy %s returned %s: %s", path, response.status_code, response.text)
            raise UpstreamError(status_code=response.status_code, raw=response.text)

        record_upstream_call(endpoint, 'ok', elapsed)
        return response.json()

    def search_tracks(self, q: str, limit: int = 1, market: Optional[str] = None) -> Any:
        params: Dict[str, Any] = {'q': q, 'limit': limit}
        if market:
            params['market'] = market
        return self._get('search', '/spotify/search', params)

    def search_albums(self, q: str) -> Any:
        return self._get('search-albums', '/spotify/search-albums', {'q': q})

    def search_artists(self, q: str, limit: int = 1) -> Any:
        return self._get('search-artists', '/spotify/search-artists', {'q': q, 'limit': limit})

    def get_track(self, track_id: str) -> Any:
        return self._get('tracks', f'/spotify/tracks/{track_id}')

    def get_audio_features(self, track_id: str) -> Any:
        return self._get('audio-features', f'/spotify/audio-features/{track_id}')

    def get_album(self, album_id: str) -> Any:
        return self._get('albums', f'/spotify/albums/{album_id}')

    def get_artist(self, artist_id: str) -> Any:
        return self._get('artists', f'/spotify/artists/{artist_id}')

    def get_artist_albums(self, artist_id: str, include_groups: str = 'album,single', limit: int = 50) -> Any:
        return self._get(
            'artist-albums',
            f'/spotify/artists/{artist_id}/albums',
            {'include_groups': include_groups, 'limit': limit},
        )

    def get_artist_top_tracks(self, artist_id: str, market: Optional[str] = None) -> Any:
        return self._get(
            'artist-top-tracks',
            f'/spotify/artists/{artist_id}/top-tracks',
            {'market': market or Config.DEFAULT_MARKET},
        )

    def get_related_artists(self, artist_id: str) -> Any:
        return self._get('related-artists', f'/spotify/artists/{artist_id}/related-artists')


__all__ = ["SpotifyProxyClient"]
