"""Album-level aggregation over per-track detail lookups."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Tuple

from src.models.dto import AlbumAggregate, AlbumTrackRow

from .stats import format_duration_ms, mean, median

# (simplified track stub from the album payload, full track lookup)
TrackPair = Tuple[Mapping[str, Any], Mapping[str, Any]]

# Missing popularity ranks below any reported value
_MISSING_POPULARITY = -1


def _prefer(full: Mapping[str, Any], simplified: Mapping[str, Any], key: str) -> Any:
    value = full.get(key)
    if value is None:
        value = simplified.get(key)
    return value


def _artist_names(payload: Mapping[str, Any]) -> str:
    return ', '.join(a.get('name') for a in (payload.get('artists') or []) if a and a.get('name'))


def merge_track(simplified: Mapping[str, Any], full: Mapping[str, Any]) -> AlbumTrackRow:
    """Merge a simplified album track with its full lookup; full wins per field."""
    duration_ms = _prefer(full, simplified, 'duration_ms')
    return AlbumTrackRow(
        track_id=_prefer(full, simplified, 'id'),
        name=full.get('name') or simplified.get('name') or 'Unknown track',
        artist_name=_artist_names(full) or _artist_names(simplified) or 'Unknown',
        popularity=full.get('popularity'),
        duration_ms=duration_ms,
        duration_formatted=format_duration_ms(duration_ms),
        disc_number=_prefer(full, simplified, 'disc_number'),
        track_number=_prefer(full, simplified, 'track_number'),
    )


def aggregate_album(pairs: Iterable[Optional[TrackPair]]) -> AlbumAggregate:
    """Aggregate resolved track pairs into album statistics.

    ``None`` entries stand for tracks whose detail lookup failed; they are
    dropped. Rows are ranked by descending popularity with a stable sort, so
    ties keep track-listing order.
    """
    rows: List[AlbumTrackRow] = []
    total_duration_ms = 0
    popularity_values: List[int] = []

    for pair in pairs:
        if not pair:
            continue
        simplified, full = pair
        row = merge_track(simplified or {}, full or {})
        if row.duration_ms is not None:
            total_duration_ms += row.duration_ms
        if row.popularity is not None:
            popularity_values.append(row.popularity)
        rows.append(row)

    rows.sort(
        key=lambda r: r.popularity if r.popularity is not None else _MISSING_POPULARITY,
        reverse=True,
    )
    ranked = [row.model_copy(update={'rank': idx}) for idx, row in enumerate(rows, start=1)]
    top = ranked[0] if ranked else None

    return AlbumAggregate(
        total_tracks=len(ranked),
        total_duration_ms=total_duration_ms,
        total_duration_formatted=format_duration_ms(total_duration_ms),
        avg_popularity=mean(popularity_values),
        median_popularity=median(popularity_values),
        top_track_name=top.name if top else None,
        top_track_popularity=top.popularity if top else None,
        tracks=ranked,
    )


__all__ = ["TrackPair", "merge_track", "aggregate_album"]
