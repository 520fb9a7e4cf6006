# src/infrastructure/spotify/web_api.py
import logging
import time
from typing import Any, Callable, Optional

import spotipy
from spotipy.exceptions import SpotifyException

from config import Config
from src.domain.errors import UpstreamError
from src.observability.metrics import record_upstream_call

from .token_broker import TokenBroker

logger = logging.getLogger(__name__)


class SpotifyWebApi:
    """Thin pass-through over spotipy for the proxy endpoints.

    Every method returns the upstream JSON unchanged. A non-2xx answer is
    raised as ``UpstreamError`` carrying the upstream status and body. No call
    is retried: spotipy's own retry loops are disabled.
    """

    def __init__(self, token_broker: Optional[TokenBroker] = None,
                 spotify_client=None,
                 default_market: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.token_broker = token_broker or TokenBroker()
        self.default_market = default_market or Config.DEFAULT_MARKET
        self.sp = spotify_client
        if self.sp is None:
            self.sp = spotipy.Spotify(
                auth_manager=self.token_broker,
                requests_timeout=timeout or Config.HTTP_TIMEOUT_SECONDS,
                retries=0,
                status_retries=0,
            )
            logger.info("Spotipy client initialized for the Spotify proxy.")
        else:
            logger.info("Spotipy client injected into SpotifyWebApi.")

    def _call(self, endpoint: str, label: str, call: Callable[[], Any]) -> Any:
        started = time.perf_counter()
        try:
            result = call()
        except SpotifyException as exc:
            record_upstream_call(endpoint, 'error', time.perf_counter() - started)
            if exc.http_status == 401:
                # Revoked before our expiry estimate; the next request refetches
                self.token_broker.invalidate()
            logger.error('Spotify %s error (%s): %s', endpoint, exc.http_status, exc.msg)
            raise UpstreamError(f'Spotify {label} failed', status_code=exc.http_status or 502, raw=exc.msg) from exc
        record_upstream_call(endpoint, 'ok', time.perf_counter() - started)
        return result

    def search(self, q: str, search_type: str = 'track', limit: int = 1, market: Optional[str] = None) -> Any:
        return self._call(
            f'search:{search_type}', f'{search_type} search',
            lambda: self.sp.search(q=q, limit=limit, type=search_type, market=market),
        )

    def track(self, track_id: str) -> Any:
        return self._call('tracks', 'tracks', lambda: self.sp.track(track_id))

    def audio_features(self, track_id: str) -> Any:
        features = self._call('audio-features', 'audio-features', lambda: self.sp.audio_features([track_id]))
        first = features[0] if isinstance(features, list) and features else None
        if first is None:
            raise UpstreamError('Spotify audio-features request failed', status_code=404,
                                raw=f'No audio features for {track_id}')
        return first

    def album(self, album_id: str, market: Optional[str] = None) -> Any:
        return self._call(
            'albums', 'album details',
            lambda: self.sp.album(album_id, market=market or self.default_market),
        )

    def artist(self, artist_id: str) -> Any:
        return self._call('artists', 'artist details', lambda: self.sp.artist(artist_id))

    def artist_albums(self, artist_id: str, include_groups: str = 'album,single', limit: int = 50) -> Any:
        return self._call(
            'artist-albums', 'artist albums',
            lambda: self.sp.artist_albums(artist_id, include_groups=include_groups, limit=limit),
        )

    def artist_top_tracks(self, artist_id: str, market: Optional[str] = None) -> Any:
        return self._call(
            'artist-top-tracks', 'artist top-tracks',
            lambda: self.sp.artist_top_tracks(artist_id, country=market or self.default_market),
        )

    def artist_related_artists(self, artist_id: str) -> Any:
        return self._call(
            'related-artists', 'related-artists',
            lambda: self.sp.artist_related_artists(artist_id),
        )


__all__ = ["SpotifyWebApi"]
