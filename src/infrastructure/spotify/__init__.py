"""Spotify Web API access: token broker, spotipy pass-through and proxy client."""

from .token_broker import TokenBroker, TokenUnavailableError
from .web_api import SpotifyWebApi
from .proxy_client import SpotifyProxyClient

__all__ = ["TokenBroker", "TokenUnavailableError", "SpotifyWebApi", "SpotifyProxyClient"]
