"""JSON error responses shared by the route blueprints."""

import logging

from flask import jsonify

from src.domain.errors import CatalogError, UpstreamError

logger = logging.getLogger(__name__)


def error_response(exc: CatalogError):
    if isinstance(exc, UpstreamError) and exc.raw:
        logger.debug("Upstream body for failed request (%s): %s", exc.status_code, exc.raw)
    return jsonify(exc.to_dict()), exc.status_code


def internal_error(context: str, exc: Exception):
    logger.error("%s endpoint error: %s", context, exc, exc_info=True)
    return jsonify({"error": "Internal server error"}), 500
