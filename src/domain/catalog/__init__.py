"""Catalog analytics: derived stats, album aggregation, similarity, trends."""

from .analytics_service import CatalogAnalyticsService
from .album_analyzer import aggregate_album
from .similarity import recommend, score_candidate
from .stats import format_duration_ms, mood_label, popularity_tier
from .trends import aggregate_trends

__all__ = [
    "CatalogAnalyticsService",
    "aggregate_album",
    "aggregate_trends",
    "recommend",
    "score_candidate",
    "format_duration_ms",
    "mood_label",
    "popularity_tier",
]
