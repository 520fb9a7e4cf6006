from __future__ import annotations

from typing import Optional

from flask import Blueprint, Response
from prometheus_client import Counter, Gauge, Histogram, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

UPSTREAM_CALLS = Counter(
    "trackiq_upstream_calls_total",
    "Calls made to the Spotify proxy or the Spotify Web API.",
    ["endpoint", "outcome"],
)
UPSTREAM_LATENCY = Histogram(
    "trackiq_upstream_call_seconds",
    "Latency of calls to the Spotify proxy or the Spotify Web API.",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, float("inf")),
)
TOKEN_REFRESHES = Counter(
    "trackiq_token_refresh_total",
    "Client-credentials token fetches by outcome.",
    ["outcome"],
)
DEGRADED_LOOKUPS = Counter(
    "trackiq_degraded_lookups_total",
    "Secondary lookups that failed and were dropped from an aggregate.",
    ["view"],
)
REGISTERED_SERVICES = Gauge(
    "trackiq_registered_services",
    "Number of services currently held by the service directory.",
)


def record_upstream_call(endpoint: str, outcome: str, duration_seconds: Optional[float] = None) -> None:
    UPSTREAM_CALLS.labels(endpoint=endpoint, outcome=outcome).inc()
    if duration_seconds is not None:
        UPSTREAM_LATENCY.labels(endpoint=endpoint).observe(duration_seconds)


def record_token_refresh(outcome: str) -> None:
    TOKEN_REFRESHES.labels(outcome=outcome).inc()


def record_degraded_lookup(view: str) -> None:
    DEGRADED_LOOKUPS.labels(view=view).inc()


def update_registry_gauge(count: int) -> None:
    REGISTERED_SERVICES.set(max(0, count))


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
