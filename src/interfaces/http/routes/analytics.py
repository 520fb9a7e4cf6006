import logging
from flask import Blueprint, request, jsonify, current_app

from src.domain.errors import CatalogError
from src.interfaces.http.responses import error_response, internal_error

logger = logging.getLogger(__name__)

analytics_bp = Blueprint('analytics_bp', __name__, url_prefix='/api')


def get_analytics_service():
    return current_app.extensions['catalog_analytics']


def _respond(context, build):
    try:
        result = build(get_analytics_service())
    except CatalogError as e:
        if e.status_code >= 500:
            logger.error("%s failed with %s: %s", context, e.status_code, e.message)
        else:
            logger.info("%s rejected with %s: %s", context, e.status_code, e.message)
        return error_response(e)
    except Exception as e:
        return internal_error(context, e)
    return jsonify(result.to_json()), 200


@analytics_bp.route('/song-stats', methods=['GET'])
def song_stats():
    """Metadata, popularity tier and formatted duration of the best matching track."""
    query = request.args.get('q')
    return _respond('Song Stats', lambda svc: svc.song_stats(query))


@analytics_bp.route('/album-analyzer', methods=['GET'])
def album_analyzer():
    """Per-track ranking plus duration and popularity aggregates for the best matching album."""
    query = request.args.get('q')
    return _respond('Album Analyzer', lambda svc: svc.album_analyzer(query))


@analytics_bp.route('/song-similarity', methods=['GET'])
def song_similarity():
    query = request.args.get('q')
    return _respond('Song Similarity', lambda svc: svc.song_similarity(query))


@analytics_bp.route('/trend-analytics', methods=['GET'])
def trend_analytics():
    # Blank or missing country means the global view
    country = request.args.get('country')
    return _respond('Trend Analytics', lambda svc: svc.trend_analytics(country))


@analytics_bp.route('/artist-stats', methods=['GET'])
def artist_stats():
    query = request.args.get('q')
    return _respond('Artist Stats', lambda svc: svc.artist_stats(query))


@analytics_bp.route('/song-mood', methods=['GET'])
def song_mood():
    query = request.args.get('q')
    return _respond('Song Mood', lambda svc: svc.song_mood(query))
