"""Top-track trend summaries for a market."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from src.models.dto import TrendReport, TrendTrack

from .stats import format_duration_ms, mean, parse_release_year, round_half_up


def aggregate_trends(
    items: Sequence[Mapping[str, Any]],
    *,
    market: str,
    display_country: str,
    window: str,
    top_n: int = 10,
) -> TrendReport:
    """Keep the ``top_n`` most popular tracks and average their stats.

    Missing popularity sorts as 0. The averages only consider tracks that
    report the value; with none they are ``None``.
    """
    ranked = sorted(items, key=lambda t: t.get('popularity') or 0, reverse=True)[:top_n]

    top_tracks = []
    for idx, track in enumerate(ranked, start=1):
        album = track.get('album') or {}
        artists = ', '.join(a.get('name') for a in (track.get('artists') or []) if a and a.get('name'))
        top_tracks.append(TrendTrack(
            rank=idx,
            track_name=track.get('name') or 'Unknown track',
            artist_name=artists or 'Unknown artist',
            popularity=track.get('popularity'),
            release_year=parse_release_year(album.get('release_date')),
            duration_formatted=format_duration_ms(track.get('duration_ms')),
        ))

    avg_year = mean(t.release_year for t in top_tracks if t.release_year is not None)
    return TrendReport(
        display_country=display_country,
        market=market,
        window=window,
        avg_popularity=mean(t.popularity for t in top_tracks if t.popularity is not None),
        avg_release_year=round_half_up(avg_year) if avg_year is not None else None,
        top_tracks=top_tracks,
    )


__all__ = ["aggregate_trends"]
