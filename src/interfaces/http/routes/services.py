import logging
from flask import Blueprint, request, jsonify, current_app

from src.domain.errors import CatalogError
from src.interfaces.http.responses import error_response, internal_error

logger = logging.getLogger(__name__)

services_bp = Blueprint('services_bp', __name__, url_prefix='/api/services')


def get_registry_client():
    return current_app.extensions['registry_client']


@services_bp.route('', methods=['GET'])
def list_services():
    try:
        services = get_registry_client().list_services()
    except CatalogError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('Service list', e)
    return jsonify({"services": services})


@services_bp.route('/search', methods=['GET'])
def search_services():
    """Forward a directory search for the UI, wrapped as ``{"services": [...]}``."""
    q = (request.args.get('q') or '').strip()
    try:
        services = get_registry_client().search(q)
    except CatalogError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('Service search', e)
    return jsonify({"services": services})
