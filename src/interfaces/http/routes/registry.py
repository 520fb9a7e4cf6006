import logging
from flask import Blueprint, request, jsonify, current_app

from src.domain.errors import CatalogError
from src.interfaces.http.responses import error_response

logger = logging.getLogger(__name__)

registry_bp = Blueprint('registry_bp', __name__)


def get_directory():
    return current_app.extensions['service_directory']


@registry_bp.route('/', methods=['GET'])
def registry_status():
    directory = get_directory()
    return jsonify({
        "status": "ok",
        "instance": directory.instance_name,
        "serviceCount": len(directory),
    })


@registry_bp.route('/services/register', methods=['POST'])
def register_service():
    """Create a descriptor (201) or update an existing one in place (200)."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    try:
        descriptor, created = get_directory().register(
            payload.get('id'),
            payload.get('name'),
            payload.get('url'),
            payload.get('description'),
        )
    except CatalogError as e:
        return error_response(e)
    return jsonify(descriptor.to_json()), 201 if created else 200


@registry_bp.route('/services', methods=['GET'])
def list_services():
    return jsonify([svc.to_json() for svc in get_directory().list()])


@registry_bp.route('/services/search', methods=['GET'])
def search_services():
    q = request.args.get('q', '')
    return jsonify([svc.to_json() for svc in get_directory().search(q)])


@registry_bp.route('/services/<string:service_id>', methods=['DELETE'])
def delete_service(service_id):
    try:
        get_directory().delete(service_id)
    except CatalogError as e:
        return error_response(e)
    return '', 204
