"""
Shared error handlers for Flask services.

Usage:
    from shared.error_handlers import register_error_handlers
    register_error_handlers(app, logger)

This registers JSON handlers for common HTTP errors. Messages are generic on
purpose: callers never learn which routes exist or what failed internally.
Wrong method and wrong path are both reported as 404.
"""

import logging
from flask import jsonify


def _error_response(code, message):
    """Return a JSON error body with the given status."""
    return jsonify({'error': message}), code


def register_error_handlers(app, logger=None):
    """
    Register standard error handlers on a Flask app.

    Args:
        app: Flask application instance
        logger: Optional logger instance. If not provided, uses module-level logger.
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request"""
        return _error_response(400, 'Bad request')

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle 401 Unauthorized"""
        return _error_response(401, 'Unauthorized')

    @app.errorhandler(403)
    def forbidden(error):
        """Handle 403 Forbidden"""
        return _error_response(403, 'Forbidden')

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found"""
        return _error_response(404, 'Not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 Method Not Allowed the same way as an unknown path"""
        return _error_response(404, 'Not found')

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error"""
        logger.error(f"Internal server error: {error}", exc_info=True)
        return _error_response(500, 'Internal server error')

    @app.errorhandler(502)
    def bad_gateway(error):
        """Handle 502 Bad Gateway"""
        logger.error(f"Bad gateway: {error}")
        return _error_response(502, 'Bad gateway')

    @app.errorhandler(503)
    def service_unavailable(error):
        """Handle 503 Service Unavailable"""
        return _error_response(503, 'Service unavailable')

    @app.errorhandler(504)
    def gateway_timeout(error):
        """Handle 504 Gateway Timeout"""
        logger.warning(f"Gateway timeout: {error}")
        return _error_response(504, 'Gateway timeout')
