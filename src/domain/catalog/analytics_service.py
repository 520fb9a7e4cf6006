# src/domain/catalog/analytics_service.py
import logging
from typing import Any, Callable, List, Optional, TypeVar

from config import Config
from src.domain.errors import CatalogError, NotFoundError, UpstreamError, ValidationError
from src.infrastructure.spotify import SpotifyProxyClient
from src.models.dto import (
    AlbumSummary,
    ArtistProfile,
    ArtistTopTrack,
    MoodReport,
    SimilarityResult,
    SongStats,
    TrackSnapshot,
    TrendReport,
)
from src.observability.metrics import record_degraded_lookup
from src.utils.concurrency import fan_out

from .album_analyzer import aggregate_album
from .countries import resolve_market
from .similarity import recommend, seed_summary
from .stats import MOOD_FEATURES, format_duration_ms, mood_label, parse_release_year, popularity_tier
from .trends import aggregate_trends

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _require_query(q: Optional[str], what: str) -> str:
    query = (q or '').strip()
    if not query:
        raise ValidationError(f'Missing q query parameter ({what})')
    return query


class CatalogAnalyticsService:
    """Builds the display-ready statistics served by the main service.

    Primary lookups (the search that picks the item, the album or artist
    detail fetch) abort the request when they fail. Secondary lookups only
    enrich the result: a failure is logged and the result is built without it.
    """

    def __init__(self, proxy: Optional[SpotifyProxyClient] = None,
                 related_artist_limit: Optional[int] = None,
                 result_limit: Optional[int] = None,
                 max_workers: Optional[int] = None):
        self.proxy = proxy or SpotifyProxyClient()
        self.related_artist_limit = Config.SIMILARITY_RELATED_ARTIST_LIMIT if related_artist_limit is None else related_artist_limit
        self.result_limit = result_limit or Config.SIMILARITY_RESULT_LIMIT
        self.max_workers = max_workers or Config.FANOUT_MAX_WORKERS

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _primary(message: str, call: Callable[[], T]) -> T:
        try:
            return call()
        except UpstreamError as exc:
            raise exc.with_message(message) from exc

    @staticmethod
    def _secondary(view: str, action: str, call: Callable[[], T]) -> Optional[T]:
        try:
            return call()
        except CatalogError as exc:
            record_degraded_lookup(view)
            logger.warning("%s: %s failed (%s); continuing without it.", view, action, exc.message)
            return None

    def _resolve_track(self, query: str) -> TrackSnapshot:
        data = self._primary('Failed to search track', lambda: self.proxy.search_tracks(query, limit=1))
        items = ((data or {}).get('tracks') or {}).get('items') or []
        if not items:
            raise NotFoundError('No track found for that query')
        return TrackSnapshot.from_spotify(items[0])

    # -- views -------------------------------------------------------------

    def song_stats(self, q: Optional[str]) -> SongStats:
        track = self._resolve_track(_require_query(q, 'song name or query'))
        return SongStats(
            track_id=track.id,
            track_name=track.name,
            artist_name=track.artist_display(),
            album_name=track.album_name,
            album_image=track.album_image,
            popularity=track.popularity,
            popularity_tier=popularity_tier(track.popularity),
            duration_ms=track.duration_ms,
            duration_formatted=format_duration_ms(track.duration_ms),
            release_date=track.release_date,
            release_year=parse_release_year(track.release_date),
            explicit=bool(track.explicit),
            markets_count=track.markets_count,
        )

    def album_analyzer(self, q: Optional[str]) -> AlbumSummary:
        query = _require_query(q, 'album name or query')
        data = self._primary('Failed to search album', lambda: self.proxy.search_albums(query))
        albums = ((data or {}).get('albums') or {}).get('items') or []
        if not albums:
            raise NotFoundError('No album found for that query')

        album = albums[0]
        album_id = album.get('id')
        album_full = self._primary('Failed to fetch album details', lambda: self.proxy.get_album(album_id))

        stubs = [t for t in ((album_full.get('tracks') or {}).get('items') or []) if t and t.get('id')]

        def _resolve(stub):
            full = self._secondary('album-analyzer', f"track details for {stub['id']}",
                                   lambda: self.proxy.get_track(stub['id']))
            return (stub, full) if full is not None else None

        pairs = fan_out(_resolve, stubs, max_workers=self.max_workers, label='album-tracks')
        aggregate = aggregate_album(pairs)

        def _artists(payload):
            return ', '.join(a.get('name') for a in (payload.get('artists') or []) if a and a.get('name'))

        release_date = album_full.get('release_date') or album.get('release_date')
        return AlbumSummary(
            **aggregate.model_dump(),
            album_id=album_id,
            album_name=album_full.get('name') or album.get('name'),
            artists=_artists(album_full) or _artists(album) or None,
            album_image=(album_full.get('images') or album.get('images') or [{}])[0].get('url'),
            label=album_full.get('label'),
            release_date=release_date,
            release_year=parse_release_year(release_date),
        )

    def song_similarity(self, q: Optional[str]) -> SimilarityResult:
        seed = self._resolve_track(_require_query(q, 'song name or query'))
        if not seed.primary_artist_id:
            raise ValidationError('Seed track has no primary artist; cannot compute similarity.')
        artist_id = seed.primary_artist_id

        top_data, related_data = fan_out(
            lambda call: call(),
            [
                lambda: self._secondary('song-similarity', 'artist top tracks',
                                        lambda: self.proxy.get_artist_top_tracks(artist_id)),
                lambda: self._secondary('song-similarity', 'related artists',
                                        lambda: self.proxy.get_related_artists(artist_id)),
            ],
            max_workers=2,
            label='similarity-seed',
        )
        same_artist_tracks = (top_data or {}).get('tracks') or []
        related_artists = [a for a in ((related_data or {}).get('artists') or [])[:self.related_artist_limit]
                           if a and a.get('id')]

        def _related_block(artist):
            data = self._secondary('song-similarity', f"top tracks for related artist {artist['id']}",
                                   lambda: self.proxy.get_artist_top_tracks(artist['id']))
            if data is None:
                return None
            return artist, data.get('tracks') or []

        related_blocks = fan_out(_related_block, related_artists, max_workers=self.max_workers,
                                 label='related-top-tracks')
        recommendations = recommend(seed, same_artist_tracks, related_blocks, limit=self.result_limit)
        logger.info("Song similarity for %s: %s recommendations.", seed.id, len(recommendations))
        return SimilarityResult(seed_track=seed_summary(seed), recommendations=recommendations)

    def trend_analytics(self, country: Optional[str]) -> TrendReport:
        market, display_country = resolve_market(country)
        data = self._primary(
            'Failed to fetch tracks from Spotify',
            lambda: self.proxy.search_tracks(Config.TREND_QUERY, limit=Config.TREND_SEARCH_LIMIT, market=market),
        )
        items = ((data or {}).get('tracks') or {}).get('items') or []
        if not items:
            raise NotFoundError('No tracks found for this market / time window.')
        return aggregate_trends(
            [i for i in items if i],
            market=market,
            display_country=display_country,
            window=Config.TREND_WINDOW_LABEL,
            top_n=Config.TREND_TOP_N,
        )

    def artist_stats(self, q: Optional[str]) -> ArtistProfile:
        query = _require_query(q, 'artist name or query')
        data = self._primary('Failed to search artist', lambda: self.proxy.search_artists(query, limit=1))
        artists = ((data or {}).get('artists') or {}).get('items') or []
        if not artists:
            raise NotFoundError('No artist found for that query')

        artist = artists[0]
        artist_id = artist.get('id')
        artist_full = self._primary('Failed to fetch artist details', lambda: self.proxy.get_artist(artist_id))

        albums_data, top_data = fan_out(
            lambda call: call(),
            [
                lambda: self._secondary('artist-stats', 'artist albums',
                                        lambda: self.proxy.get_artist_albums(artist_id)),
                lambda: self._secondary('artist-stats', 'artist top tracks',
                                        lambda: self.proxy.get_artist_top_tracks(artist_id)),
            ],
            max_workers=2,
            label='artist-stats',
        )

        album_count = None
        if albums_data is not None:
            total = albums_data.get('total')
            if isinstance(total, int) and not isinstance(total, bool):
                album_count = total
            elif isinstance(albums_data.get('items'), list):
                album_count = len(albums_data['items'])

        top_tracks: List[ArtistTopTrack] = []
        for track in ((top_data or {}).get('tracks') or [])[:5]:
            duration_ms = track.get('duration_ms')
            top_tracks.append(ArtistTopTrack(
                name=track.get('name') or 'Unknown track',
                album_name=(track.get('album') or {}).get('name'),
                popularity=track.get('popularity'),
                duration_ms=duration_ms,
                duration_formatted=format_duration_ms(duration_ms),
            ))

        images = artist_full.get('images') or []
        popularity = artist_full.get('popularity')
        return ArtistProfile(
            artist_id=artist_id,
            name=artist_full.get('name') or artist.get('name') or 'Unknown artist',
            image=images[0].get('url') if images else None,
            followers=(artist_full.get('followers') or {}).get('total'),
            popularity=popularity,
            popularity_tier=popularity_tier(popularity),
            genres=artist_full.get('genres') or [],
            album_count=album_count,
            top_tracks=top_tracks,
        )

    def song_mood(self, q: Optional[str]) -> MoodReport:
        track = self._resolve_track(_require_query(q, 'song name or query'))
        features: Optional[Any] = None
        if track.id:
            features = self._secondary('song-mood', 'audio features',
                                       lambda: self.proxy.get_audio_features(track.id))
        picked = {name: features.get(name) for name in MOOD_FEATURES} if features else None
        return MoodReport(
            track_id=track.id,
            track_name=track.name,
            artist_name=track.artist_display(),
            features=picked,
            mood_label=mood_label(picked),
        )


__all__ = ["CatalogAnalyticsService"]
