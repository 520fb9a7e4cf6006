import logging
import re

from flask import Blueprint, request, jsonify, current_app

from src.domain.errors import CatalogError, UpstreamError
from src.interfaces.http.responses import error_response, internal_error

logger = logging.getLogger(__name__)

spotify_proxy_bp = Blueprint('spotify_proxy_bp', __name__, url_prefix='/spotify')
token_bp = Blueprint('token_bp', __name__, url_prefix='/token')

MAX_LIMIT = 50
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def get_spotify_api():
    return current_app.extensions['spotify_api']


def _bounded_limit(default: int) -> int:
    """Leading integer of the ``limit`` query param when it is in 1..50, else ``default``.

    Trailing text is ignored, so ``5abc`` and ``7.9`` read as 5 and 7.
    """
    match = _LEADING_INT.match(request.args.get('limit', ''))
    if not match:
        return default
    value = int(match.group(1))
    if 0 < value <= MAX_LIMIT:
        return value
    return default


def _required_query():
    q = request.args.get('q')
    if not q:
        return None, (jsonify({"error": "Missing q query parameter"}), 400)
    return q, None


def _proxy(context, call):
    """Return upstream JSON verbatim, or the ``{error, status, raw}`` envelope."""
    try:
        return jsonify(call(get_spotify_api())), 200
    except UpstreamError as e:
        return jsonify({"error": e.message, "status": e.status_code, "raw": e.raw}), e.status_code
    except CatalogError as e:
        logger.error("Proxy %s error: %s", context, e.message)
        return error_response(e)
    except Exception as e:
        return internal_error(f"Proxy {context}", e)


@spotify_proxy_bp.route('/search', methods=['GET'])
def search_tracks():
    q, failure = _required_query()
    if failure:
        return failure
    limit = _bounded_limit(1)
    market = request.args.get('market') or 'US'
    return _proxy('search', lambda api: api.search(q, 'track', limit=limit, market=market))


@spotify_proxy_bp.route('/search-playlists', methods=['GET'])
def search_playlists():
    q, failure = _required_query()
    if failure:
        return failure
    limit = _bounded_limit(10)
    return _proxy('search-playlists', lambda api: api.search(q, 'playlist', limit=limit))


@spotify_proxy_bp.route('/search-albums', methods=['GET'])
def search_albums():
    q, failure = _required_query()
    if failure:
        return failure
    return _proxy('search-albums', lambda api: api.search(q, 'album', limit=1))


@spotify_proxy_bp.route('/search-artists', methods=['GET'])
def search_artists():
    q, failure = _required_query()
    if failure:
        return failure
    limit = _bounded_limit(1)
    return _proxy('search-artists', lambda api: api.search(q, 'artist', limit=limit))


@spotify_proxy_bp.route('/tracks/<string:track_id>', methods=['GET'])
def get_track(track_id):
    return _proxy('tracks', lambda api: api.track(track_id))


@spotify_proxy_bp.route('/audio-features/<string:track_id>', methods=['GET'])
def get_audio_features(track_id):
    return _proxy('audio-features', lambda api: api.audio_features(track_id))


@spotify_proxy_bp.route('/albums/<string:album_id>', methods=['GET'])
def get_album(album_id):
    return _proxy('albums', lambda api: api.album(album_id, market='US'))


@spotify_proxy_bp.route('/artists/<string:artist_id>', methods=['GET'])
def get_artist(artist_id):
    return _proxy('artist details', lambda api: api.artist(artist_id))


@spotify_proxy_bp.route('/artists/<string:artist_id>/albums', methods=['GET'])
def get_artist_albums(artist_id):
    include_groups = request.args.get('include_groups') or 'album,single'
    limit = _bounded_limit(50)
    return _proxy('artist albums',
                  lambda api: api.artist_albums(artist_id, include_groups=include_groups, limit=limit))


@spotify_proxy_bp.route('/artists/<string:artist_id>/top-tracks', methods=['GET'])
def get_artist_top_tracks(artist_id):
    market = request.args.get('market') or 'US'
    return _proxy('artists top-tracks', lambda api: api.artist_top_tracks(artist_id, market=market))


@spotify_proxy_bp.route('/artists/<string:artist_id>/related-artists', methods=['GET'])
def get_related_artists(artist_id):
    return _proxy('related-artists', lambda api: api.artist_related_artists(artist_id))


@token_bp.route('/app', methods=['GET'])
def app_token():
    try:
        token = get_spotify_api().token_broker.refresh_if_expired()
    except Exception as e:
        logger.error("Token broker error: %s", e, exc_info=True)
        return jsonify({"error": "Failed to get app token"}), 500
    return jsonify({"access_token": token}), 200
