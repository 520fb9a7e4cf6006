"""Similar-track scoring.

Candidates come from the seed artist's top tracks and from the top tracks of
a few related artists. Each candidate is compared with the seed on artist
relation, release year, popularity, duration and explicitness, and the
highest scoring ones are returned with a short human-readable reason.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from src.models.dto import Candidate, Recommendation, SeedTrack, TrackSnapshot

from .stats import format_duration_ms, parse_release_year

SAME_ARTIST_BONUS = 3.0
RELATED_ARTIST_BONUS = 2.0
CLOSE_YEAR_BONUS = 1.5  # yearDiff <= 1
NEAR_YEAR_BONUS = 1.0  # yearDiff <= 3
POPULARITY_PENALTY_PER_POINT = 0.03
DURATION_PENALTY_PER_15S = 0.5
DURATION_PENALTY_CAP = 3.0
EXPLICIT_MISMATCH_PENALTY = 0.5

REASON_SEPARATOR = " · "
FALLBACK_REASON = "similar by track metadata"

# (related artist payload, that artist's top tracks)
RelatedBlock = Tuple[Mapping[str, Any], Sequence[Mapping[str, Any]]]


def _abs_diff(a, b):
    if a is None or b is None:
        return None
    return abs(a - b)


def compare_with_seed(seed: TrackSnapshot, candidate: Candidate) -> Candidate:
    """Return ``candidate`` with its difference signals against ``seed`` filled in."""
    track = candidate.track
    seed_year = parse_release_year(seed.release_date)
    year = parse_release_year(track.release_date)
    duration_diff = _abs_diff(seed.duration_ms, track.duration_ms)
    explicit_mismatch = (
        seed.explicit is not None
        and track.explicit is not None
        and seed.explicit != track.explicit
    )
    return candidate.model_copy(update={
        'release_year': year,
        'year_diff': _abs_diff(seed_year, year),
        'popularity_diff': _abs_diff(seed.popularity, track.popularity),
        'duration_diff_sec': duration_diff / 1000 if duration_diff is not None else None,
        'explicit_mismatch': explicit_mismatch,
    })


def build_candidate_pool(
    seed: TrackSnapshot,
    same_artist_tracks: Iterable[Mapping[str, Any]],
    related_blocks: Iterable[Optional[RelatedBlock]],
    seed_artist_name: Optional[str] = None,
) -> Dict[str, Candidate]:
    """Collect deduplicated candidates keyed by track id.

    The first source to yield a track id owns it; later duplicates are
    discarded. The seed track itself is never a candidate. Insertion order
    is discovery order.
    """
    pool: Dict[str, Candidate] = {}

    def _add(payload, *, same_artist: bool, related: bool, source_name: Optional[str]) -> None:
        if not payload or not payload.get('id'):
            return
        track_id = payload['id']
        if track_id == seed.id or track_id in pool:
            return
        candidate = Candidate(
            track=TrackSnapshot.from_spotify(payload),
            is_same_artist=same_artist,
            is_related_artist=related,
            source_artist_name=source_name,
        )
        pool[track_id] = compare_with_seed(seed, candidate)

    for payload in same_artist_tracks or []:
        _add(payload, same_artist=True, related=False, source_name=seed_artist_name)

    for block in related_blocks or []:
        if not block:
            continue
        artist, tracks = block
        for payload in tracks or []:
            _add(payload, same_artist=False, related=True, source_name=(artist or {}).get('name'))

    return pool


def score_candidate(candidate: Candidate) -> float:
    score = 0.0

    if candidate.is_same_artist:
        score += SAME_ARTIST_BONUS
    elif candidate.is_related_artist:
        score += RELATED_ARTIST_BONUS

    if candidate.year_diff is not None:
        if candidate.year_diff <= 1:
            score += CLOSE_YEAR_BONUS
        elif candidate.year_diff <= 3:
            score += NEAR_YEAR_BONUS

    if candidate.popularity_diff is not None:
        score -= candidate.popularity_diff * POPULARITY_PENALTY_PER_POINT

    if candidate.duration_diff_sec is not None:
        score -= min((candidate.duration_diff_sec / 15) * DURATION_PENALTY_PER_15S, DURATION_PENALTY_CAP)

    if candidate.explicit_mismatch:
        score -= EXPLICIT_MISMATCH_PENALTY

    return score


def reason_summary(candidate: Candidate) -> str:
    reasons: List[str] = []
    if candidate.is_same_artist:
        reasons.append("same artist")
    elif candidate.is_related_artist:
        reasons.append("related artist")

    if candidate.year_diff is not None and candidate.year_diff <= 2:
        reasons.append("similar era")
    if candidate.popularity_diff is not None and candidate.popularity_diff <= 10:
        reasons.append("similar popularity")
    if candidate.duration_diff_sec is not None and candidate.duration_diff_sec <= 20:
        reasons.append("similar length")

    return REASON_SEPARATOR.join(reasons) if reasons else FALLBACK_REASON


def rank_candidates(candidates: Iterable[Candidate], limit: int = 5) -> List[Candidate]:
    """Score candidates and keep the best ``limit``.

    Sorting is stable, so candidates with equal scores keep discovery order.
    """
    scored = [
        c.model_copy(update={'score': score_candidate(c), 'reason': reason_summary(c)})
        for c in candidates
    ]
    scored.sort(key=lambda c: c.score, reverse=True)
    return scored[:max(0, limit)]


def to_recommendation(rank: int, candidate: Candidate) -> Recommendation:
    track = candidate.track
    return Recommendation(
        rank=rank,
        track_id=track.id,
        track_name=track.name,
        artist_name=track.artist_display('Unknown artist'),
        album_name=track.album_name or 'Unknown album',
        album_image=track.album_image,
        popularity=track.popularity,
        duration_formatted=format_duration_ms(track.duration_ms),
        release_year=candidate.release_year,
        source_artist_name=candidate.source_artist_name,
        score=round(candidate.score, 4),
        reason_summary=candidate.reason,
    )


def seed_summary(seed: TrackSnapshot) -> SeedTrack:
    return SeedTrack(
        track_id=seed.id,
        track_name=seed.name,
        artist_name=seed.artist_display(),
        album_name=seed.album_name,
        album_image=seed.album_image,
        popularity=seed.popularity,
        duration_ms=seed.duration_ms,
        duration_formatted=format_duration_ms(seed.duration_ms),
        release_year=parse_release_year(seed.release_date),
        explicit=seed.explicit,
    )


def recommend(
    seed: TrackSnapshot,
    same_artist_tracks: Iterable[Mapping[str, Any]],
    related_blocks: Iterable[Optional[RelatedBlock]],
    limit: int = 5,
) -> List[Recommendation]:
    pool = build_candidate_pool(seed, same_artist_tracks, related_blocks, seed.primary_artist_name)
    top = rank_candidates(pool.values(), limit=limit)
    return [to_recommendation(idx, c) for idx, c in enumerate(top, start=1)]


__all__ = [
    "RelatedBlock",
    "compare_with_seed",
    "build_candidate_pool",
    "score_candidate",
    "reason_summary",
    "rank_candidates",
    "to_recommendation",
    "seed_summary",
    "recommend",
]
