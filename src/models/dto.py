#!/usr/bin/env python
"""
Pydantic DTOs for the TrackIQ services.

``TrackSnapshot`` and ``Candidate`` are internal, request-scoped views over
Spotify payloads. The remaining models are API responses; they serialize
with camelCase keys (``model_dump(by_alias=True)``) to match what the UI
consumes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def _first_image_url(images: Any) -> Optional[str]:
    if isinstance(images, list) and images:
        first = images[0] or {}
        return first.get('url')
    return None


class TrackSnapshot(BaseModel):
    """Immutable snapshot of a Spotify track as returned by search or lookup."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: Optional[str] = None
    artist_names: List[str] = Field(default_factory=list)
    primary_artist_id: Optional[str] = None
    primary_artist_name: Optional[str] = None
    album_name: Optional[str] = None
    album_image: Optional[str] = None
    popularity: Optional[int] = None
    duration_ms: Optional[int] = None
    release_date: Optional[str] = None
    explicit: Optional[bool] = None
    markets_count: Optional[int] = None
    disc_number: Optional[int] = None
    track_number: Optional[int] = None

    @classmethod
    def from_spotify(cls, payload: Mapping[str, Any]) -> "TrackSnapshot":
        """Build a snapshot from a full or simplified Spotify track object."""
        artists = [a for a in (payload.get('artists') or []) if a]
        album = payload.get('album') or {}
        primary = artists[0] if artists else {}
        markets = payload.get('available_markets')
        return cls(
            id=payload.get('id'),
            name=payload.get('name'),
            artist_names=[a.get('name') for a in artists if a.get('name')],
            primary_artist_id=primary.get('id'),
            primary_artist_name=primary.get('name'),
            album_name=album.get('name'),
            album_image=_first_image_url(album.get('images')),
            popularity=payload.get('popularity'),
            duration_ms=payload.get('duration_ms'),
            release_date=album.get('release_date'),
            explicit=payload.get('explicit'),
            markets_count=len(markets) if isinstance(markets, list) else None,
            disc_number=payload.get('disc_number'),
            track_number=payload.get('track_number'),
        )

    def artist_display(self, fallback: Optional[str] = None) -> Optional[str]:
        return ', '.join(self.artist_names) or fallback


class Candidate(BaseModel):
    """A track considered for recommendation against a seed track."""

    track: TrackSnapshot
    is_same_artist: bool = False
    is_related_artist: bool = False
    source_artist_name: Optional[str] = None
    release_year: Optional[int] = None
    year_diff: Optional[int] = None
    popularity_diff: Optional[int] = None
    duration_diff_sec: Optional[float] = None
    explicit_mismatch: bool = False
    score: float = 0.0
    reason: str = ''

    @property
    def id(self) -> Optional[str]:
        return self.track.id


# --- API responses ---------------------------------------------------------

class SongStats(CamelModel):
    track_id: Optional[str] = None
    track_name: Optional[str] = None
    artist_name: Optional[str] = None
    album_name: Optional[str] = None
    album_image: Optional[str] = None
    popularity: Optional[int] = None
    popularity_tier: str
    duration_ms: Optional[int] = None
    duration_formatted: Optional[str] = None
    release_date: Optional[str] = None
    release_year: Optional[int] = None
    explicit: bool = False
    markets_count: Optional[int] = None


class AlbumTrackRow(CamelModel):
    rank: int = 0
    track_id: Optional[str] = None
    name: str
    artist_name: str
    popularity: Optional[int] = None
    duration_ms: Optional[int] = None
    duration_formatted: Optional[str] = None
    disc_number: Optional[int] = None
    track_number: Optional[int] = None


class AlbumAggregate(CamelModel):
    """Derived statistics over the resolved tracks of one album."""

    total_tracks: int = 0
    total_duration_ms: int = 0
    total_duration_formatted: Optional[str] = None
    avg_popularity: Optional[float] = None
    median_popularity: Optional[float] = None
    top_track_name: Optional[str] = None
    top_track_popularity: Optional[int] = None
    tracks: List[AlbumTrackRow] = Field(default_factory=list)


class AlbumSummary(AlbumAggregate):
    album_id: Optional[str] = None
    album_name: Optional[str] = None
    artists: Optional[str] = None
    album_image: Optional[str] = None
    label: Optional[str] = None
    release_date: Optional[str] = None
    release_year: Optional[int] = None


class SeedTrack(CamelModel):
    track_id: Optional[str] = None
    track_name: Optional[str] = None
    artist_name: Optional[str] = None
    album_name: Optional[str] = None
    album_image: Optional[str] = None
    popularity: Optional[int] = None
    duration_ms: Optional[int] = None
    duration_formatted: Optional[str] = None
    release_year: Optional[int] = None
    explicit: Optional[bool] = None


class Recommendation(CamelModel):
    rank: int
    track_id: Optional[str] = None
    track_name: Optional[str] = None
    artist_name: str
    album_name: str
    album_image: Optional[str] = None
    popularity: Optional[int] = None
    duration_formatted: Optional[str] = None
    release_year: Optional[int] = None
    source_artist_name: Optional[str] = None
    score: float
    reason_summary: str


class SimilarityResult(CamelModel):
    seed_track: SeedTrack
    recommendations: List[Recommendation] = Field(default_factory=list)


class TrendTrack(CamelModel):
    rank: int
    track_name: str
    artist_name: str
    popularity: Optional[int] = None
    release_year: Optional[int] = None
    duration_formatted: Optional[str] = None


class TrendReport(CamelModel):
    display_country: str
    market: str
    window: str
    avg_popularity: Optional[float] = None
    avg_release_year: Optional[int] = None
    top_tracks: List[TrendTrack] = Field(default_factory=list)


class ArtistTopTrack(CamelModel):
    name: str
    album_name: Optional[str] = None
    popularity: Optional[int] = None
    duration_ms: Optional[int] = None
    duration_formatted: Optional[str] = None


class ArtistProfile(CamelModel):
    artist_id: Optional[str] = None
    name: str
    image: Optional[str] = None
    followers: Optional[int] = None
    popularity: Optional[int] = None
    popularity_tier: str
    genres: List[str] = Field(default_factory=list)
    album_count: Optional[int] = None
    top_tracks: List[ArtistTopTrack] = Field(default_factory=list)


class MoodReport(CamelModel):
    track_id: Optional[str] = None
    track_name: Optional[str] = None
    artist_name: Optional[str] = None
    features: Optional[Dict[str, Optional[float]]] = None
    mood_label: str


class ServiceDescriptor(CamelModel):
    """A registered service. ``id`` is the directory key."""

    id: str
    name: str
    description: str = ''
    url: str
    created_at: str
    updated_at: str


__all__ = [
    "CamelModel",
    "TrackSnapshot",
    "Candidate",
    "SongStats",
    "AlbumTrackRow",
    "AlbumAggregate",
    "AlbumSummary",
    "SeedTrack",
    "Recommendation",
    "SimilarityResult",
    "TrendTrack",
    "TrendReport",
    "ArtistTopTrack",
    "ArtistProfile",
    "MoodReport",
    "ServiceDescriptor",
]
