#!/usr/bin/env python
# config.py
import os
from typing import List

# This assumes config.py is at the root of your project
basedir = os.path.abspath(os.path.dirname(__file__))


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_csv_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    source = raw if raw is not None else default
    return [token.strip() for token in source.split(",") if token and token.strip()]


class Config:
    # Spotify client-credentials app (SPOTIPY_* accepted for spotipy-style envs)
    SPOTIFY_CLIENT_ID = os.environ.get('SPOTIFY_CLIENT_ID') or os.environ.get('SPOTIPY_CLIENT_ID')
    SPOTIFY_CLIENT_SECRET = os.environ.get('SPOTIFY_CLIENT_SECRET') or os.environ.get('SPOTIPY_CLIENT_SECRET')
    SPOTIFY_TOKEN_URL = os.getenv('SPOTIFY_TOKEN_URL', 'https://accounts.spotify.com/api/token')
    # Tokens are treated as expired this many seconds before Spotify says so
    SPOTIFY_TOKEN_EXPIRY_MARGIN_SECONDS = _get_int('SPOTIFY_TOKEN_EXPIRY_MARGIN_SECONDS', 60)

    # Service topology
    SPOTIFY_AUTH_BASE_URL = os.getenv('SPOTIFY_AUTH_BASE_URL', 'http://localhost:8081').rstrip('/')
    SERVICE_REGISTRY_BASE_URL = os.getenv('SERVICE_REGISTRY_BASE_URL', 'http://localhost:8082').rstrip('/')
    MAIN_PORT = _get_int('MAIN_PORT', _get_int('PORT', 8080))
    PROXY_PORT = _get_int('PROXY_PORT', 8081)
    REGISTRY_PORT = _get_int('REGISTRY_PORT', 8082)
    HOST = os.getenv('HOST', '0.0.0.0')

    # Outbound HTTP (no retries anywhere; a failed call is final)
    HTTP_TIMEOUT_SECONDS = _get_float('HTTP_TIMEOUT_SECONDS', 10.0)
    FANOUT_MAX_WORKERS = max(1, _get_int('FANOUT_MAX_WORKERS', 8))

    # Similarity engine
    SIMILARITY_RELATED_ARTIST_LIMIT = max(0, _get_int('SIMILARITY_RELATED_ARTIST_LIMIT', 3))
    SIMILARITY_RESULT_LIMIT = max(1, _get_int('SIMILARITY_RESULT_LIMIT', 5))
    DEFAULT_MARKET = os.getenv('DEFAULT_MARKET', 'US')

    # Trend analytics
    TREND_QUERY = os.getenv('TREND_QUERY', 'year:2020-2025')
    TREND_WINDOW_LABEL = os.getenv('TREND_WINDOW_LABEL', '2020-2025')
    TREND_SEARCH_LIMIT = 50
    TREND_TOP_N = 10

    # Service directory
    REGISTRY_INSTANCE_NAME = os.getenv('INSTANCE_NAME', 'service-registry')
    REGISTRY_HEARTBEAT_SECONDS = _get_int('REGISTRY_HEARTBEAT_SECONDS', 60)
    # Each service announces itself to the directory at start-up when enabled
    AUTO_REGISTER_SERVICES = _get_bool('AUTO_REGISTER_SERVICES', False)
    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL')

    # Runtime behavior
    # Turn Flask debug on/off from env; default off to avoid noisy console
    DEBUG = _get_bool('DEBUG', False)
    # Control console logging; when disabled, logs go only to file
    ENABLE_CONSOLE_LOGS = _get_bool('ENABLE_CONSOLE_LOGS', False)
    LOG_DIR = os.getenv('LOG_DIR', os.path.join(basedir, 'src', 'log'))

    CORS_ALLOWED_ORIGINS = _get_csv_list(
        'CORS_ALLOWED_ORIGINS',
        'http://localhost:8080,http://127.0.0.1:8080',
    )

    # Observability
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    OTEL_EXPORTER_OTLP_HEADERS = os.getenv('OTEL_EXPORTER_OTLP_HEADERS')
    OTEL_EXPORTER_OTLP_INSECURE = _get_bool('OTEL_EXPORTER_OTLP_INSECURE', True)
    OTEL_SERVICE_NAME = os.getenv('OTEL_SERVICE_NAME', 'trackiq')
