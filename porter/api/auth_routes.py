"""
Flask surface of the auth router.

Every path under the route prefix lands here and is handed to the
AuthRouter, so unknown operations and wrong methods get the router's 404
rather than Flask's.
"""
from flask import Blueprint, Response, current_app, jsonify, redirect, request

from porter.models import RequestContext

auth_bp = Blueprint('auth', __name__)

ALL_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']


def build_context():
    """Snapshot the current Flask request as a RequestContext."""
    body = request.get_json(silent=True)
    return RequestContext(
        method=request.method,
        path=request.path,
        url=request.url,
        body=body if isinstance(body, dict) else None,
        headers=request.headers,
        query=request.args,
    )


def render_response(descriptor):
    """Turn a ResponseDescriptor into a Flask response."""
    if descriptor.is_redirect:
        response = redirect(descriptor.redirect_to, code=descriptor.status)
    elif descriptor.body is None:
        response = Response(status=descriptor.status)
    elif isinstance(descriptor.body, str):
        response = Response(
            descriptor.body,
            status=descriptor.status,
            content_type=descriptor.content_type,
        )
    else:
        response = jsonify(descriptor.body)
        response.status_code = descriptor.status

    response.headers.update(descriptor.headers)
    return response


@auth_bp.route('', defaults={'subpath': ''}, methods=ALL_METHODS)
@auth_bp.route('/<path:subpath>', methods=ALL_METHODS)
def dispatch(subpath):
    """Hand the request to the app's AuthRouter"""
    router = current_app.extensions['porter_router']
    return render_response(router.dispatch(build_context()))
