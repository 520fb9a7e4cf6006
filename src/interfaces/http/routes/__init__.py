"""Route blueprints exposed via Flask."""

from .analytics import analytics_bp
from .services import services_bp
from .spotify_proxy import spotify_proxy_bp, token_bp
from .registry import registry_bp
from .health import health_bp

__all__ = [
    "analytics_bp",
    "services_bp",
    "spotify_proxy_bp",
    "token_bp",
    "registry_bp",
    "health_bp",
]
