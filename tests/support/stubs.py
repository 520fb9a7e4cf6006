"""Shared test stubs for the Spotify proxy, spotipy and requests interfaces."""

from typing import Any, Dict, Iterable, List, Optional

import requests
from spotipy.exceptions import SpotifyException


def make_track(track_id: str, name: Optional[str] = None, *,
               artist_id: Optional[str] = 'ar1',
               artist_name: Optional[str] = 'Artist One',
               popularity: Optional[int] = 50,
               duration_ms: Optional[int] = 200000,
               release_date: Optional[str] = '2020-01-01',
               explicit: Optional[bool] = False,
               album_name: str = 'Album',
               markets: Optional[List[str]] = None) -> Dict[str, Any]:
    """Build a Spotify-shaped track payload."""
    artists = []
    if artist_id or artist_name:
        artists.append({'id': artist_id, 'name': artist_name})
    payload: Dict[str, Any] = {
        'id': track_id,
        'name': name or f"Track {track_id}",
        'artists': artists,
        'album': {
            'name': album_name,
            'release_date': release_date,
            'images': [{'url': f"http://img/{track_id}.jpg"}],
        },
        'popularity': popularity,
        'duration_ms': duration_ms,
        'explicit': explicit,
    }
    if markets is not None:
        payload['available_markets'] = markets
    return payload


def search_page(kind: str, items: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    return {kind: {'items': list(items)}}


class StubProxyClient:
    """Stands in for ``SpotifyProxyClient``.

    ``responses`` maps a method name to a value, an exception instance (raised)
    or a callable taking the call arguments. Per-argument overrides go in
    ``by_arg`` keyed by ``(method, first_arg)``.
    """

    base_url = 'http://proxy.test'

    def __init__(self, responses: Optional[Dict[str, Any]] = None,
                 by_arg: Optional[Dict[tuple, Any]] = None):
        self.responses = dict(responses or {})
        self.by_arg = dict(by_arg or {})
        self.calls: List[tuple] = []

    def _answer(self, method: str, *args, **kwargs):
        self.calls.append((method, args, kwargs))
        key = (method, args[0]) if args else None
        if key is not None and key in self.by_arg:
            value = self.by_arg[key]
        elif method in self.responses:
            value = self.responses[method]
        else:
            raise AssertionError(f"unexpected proxy call: {method}{args}")
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(*args, **kwargs)
        return value

    def called(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]

    def search_tracks(self, q, limit=1, market=None):
        return self._answer('search_tracks', q, limit=limit, market=market)

    def search_albums(self, q):
        return self._answer('search_albums', q)

    def search_artists(self, q, limit=1):
        return self._answer('search_artists', q, limit=limit)

    def get_track(self, track_id):
        return self._answer('get_track', track_id)

    def get_audio_features(self, track_id):
        return self._answer('get_audio_features', track_id)

    def get_album(self, album_id):
        return self._answer('get_album', album_id)

    def get_artist(self, artist_id):
        return self._answer('get_artist', artist_id)

    def get_artist_albums(self, artist_id, include_groups='album,single', limit=50):
        return self._answer('get_artist_albums', artist_id)

    def get_artist_top_tracks(self, artist_id, market=None):
        return self._answer('get_artist_top_tracks', artist_id)

    def get_related_artists(self, artist_id):
        return self._answer('get_related_artists', artist_id)


class StubRegistryClient:
    def __init__(self, services: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.services = list(services or [])
        self.error = error
        self.queries: List[str] = []

    def list_services(self):
        if self.error:
            raise self.error
        return list(self.services)

    def search(self, q=''):
        self.queries.append(q)
        if self.error:
            raise self.error
        return [s for s in self.services if q.lower() in s['name'].lower()]


class SpotipySearchStub:
    """Minimal spotipy.Spotify replacement; configure per-method results or errors."""

    def __init__(self, **results):
        self.results = results
        self.calls: List[tuple] = []

    def _result(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        value = self.results.get(name)
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(*args, **kwargs)
        return value

    def search(self, q, limit=10, offset=0, type='track', market=None):
        return self._result('search', q=q, limit=limit, type=type, market=market)

    def track(self, track_id, market=None):
        return self._result('track', track_id)

    def audio_features(self, tracks=None):
        return self._result('audio_features', tracks)

    def album(self, album_id, market=None):
        return self._result('album', album_id, market=market)

    def artist(self, artist_id):
        return self._result('artist', artist_id)

    def artist_albums(self, artist_id, album_type=None, include_groups=None, country=None, limit=20, offset=0):
        return self._result('artist_albums', artist_id, include_groups=include_groups, limit=limit)

    def artist_top_tracks(self, artist_id, country='US'):
        return self._result('artist_top_tracks', artist_id, country=country)

    def artist_related_artists(self, artist_id):
        return self._result('artist_related_artists', artist_id)


def spotify_error(status: int, msg: str = 'upstream said no') -> SpotifyException:
    return SpotifyException(status, -1, msg)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ('' if payload is None else str(payload))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        return self._payload


class FakeSession:
    """Records outgoing requests and replays queued responses (or raises them)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def _next(self, method, url, **kwargs):
        self.requests.append({'method': method, 'url': url, **kwargs})
        if not self.responses:
            raise AssertionError(f"no queued response for {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self._next('GET', url, **kwargs)

    def post(self, url, **kwargs):
        return self._next('POST', url, **kwargs)

    def request(self, method, url, **kwargs):
        return self._next(method, url, **kwargs)


def connection_error(message: str = 'connection refused') -> requests.exceptions.ConnectionError:
    return requests.exceptions.ConnectionError(message)
