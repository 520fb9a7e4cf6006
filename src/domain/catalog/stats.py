"""Derived-stat helpers: popularity tiers, duration text, mood labels, years.

All functions here are pure and total: they never raise on missing input,
they return a sentinel label or ``None`` instead.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

UNKNOWN_TIER = "Unknown"

# Descending thresholds; first match wins
_POPULARITY_TIERS = (
    (80, "Global hit"),
    (60, "Mainstream"),
    (40, "Emerging artist"),
)
_LOWEST_TIER = "Niche/underground"

MOOD_UNAVAILABLE = "mood unavailable (no audio features)"
MOOD_FEATURES = ("energy", "danceability", "valence", "acousticness")


def popularity_tier(popularity: Optional[int]) -> str:
    if popularity is None:
        return UNKNOWN_TIER
    for threshold, label in _POPULARITY_TIERS:
        if popularity >= threshold:
            return label
    return _LOWEST_TIER


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_duration_ms(duration_ms: Optional[float]) -> Optional[str]:
    """Format milliseconds as ``"H hr M min"`` (one hour or more) or ``"M:SS"``.

    The value is rounded to the nearest whole second before splitting, so
    59500 ms renders as ``"1:00"`` rather than ``"0:60"``.
    """
    if duration_ms is None:
        return None
    total_seconds = round_half_up(duration_ms / 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours} hr {minutes} min"
    return f"{minutes}:{seconds:02d}"


def mood_label(features: Optional[Mapping[str, Any]]) -> str:
    """Classify a bundle of audio features into a coarse mood label.

    Rules are evaluated in a fixed order and the first match wins; several
    rules overlap (e.g. happy/danceable vs. hype), so the order is part of
    the behaviour.
    """
    features = features or {}
    energy = features.get("energy")
    danceability = features.get("danceability")
    valence = features.get("valence")
    acousticness = features.get("acousticness")

    if energy is None or danceability is None or valence is None or acousticness is None:
        return MOOD_UNAVAILABLE
    if energy > 0.7 and danceability > 0.6 and valence > 0.6:
        return "high-energy, happy, and danceable"
    elif energy < 0.4 and acousticness > 0.5 and valence < 0.5:
        return "chill, acoustic, and a bit moody"
    elif valence < 0.3:
        return "sad / emotional"
    elif energy > 0.8:
        return "very energetic / hype"
    return "balanced / mixed vibe"


def parse_release_year(release_date: Optional[str]) -> Optional[int]:
    """Year from the leading four characters of ``YYYY`` or ``YYYY-MM-DD``."""
    if not release_date:
        return None
    prefix = str(release_date)[:4]
    if not prefix.isdigit():
        return None
    return int(prefix)


def mean(values) -> Optional[float]:
    values = list(values)
    if not values:
        return None
    return sum(values) / len(values)


def median(values) -> Optional[float]:
    ordered = sorted(values)
    if not ordered:
        return None
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


__all__ = [
    "UNKNOWN_TIER",
    "MOOD_UNAVAILABLE",
    "MOOD_FEATURES",
    "popularity_tier",
    "round_half_up",
    "format_duration_ms",
    "mood_label",
    "parse_release_year",
    "mean",
    "median",
]
