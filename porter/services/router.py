"""
Request router for Porter.

Maps (method, operation name) to an auth handler. Knows nothing about Flask:
it takes a RequestContext and always returns a ResponseDescriptor.
"""

import logging

from porter.models import empty_response, error_response
from porter.services.auth_handlers import AuthHandlers
from porter.services.profiles import ProfileReconciler
from porter.services.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class AuthRouter:
    """
    Dispatches auth requests.

    Owns one identity backend client for its whole lifetime; handlers and
    the profile reconciler share it.
    """

    def __init__(self, config, client=None):
        """
        Args:
            config: Porter Config
            client: Identity backend client. Built from config when omitted.
        """
        self.config = config
        self.prefix = '/' + config.route_prefix.strip('/')
        self.client = client or SupabaseClient.from_config(config)
        self.reconciler = ProfileReconciler(self.client)
        self.handlers = AuthHandlers(self.client, self.reconciler, config)

        self.operations = {
            ('POST', 'signup'): self.handlers.signup,
            ('POST', 'login'): self.handlers.login,
            ('GET', 'google'): self.handlers.oauth_start,
            ('POST', 'google'): self.handlers.oauth_start,
            ('GET', 'oauth-start'): self.handlers.oauth_start,
            ('POST', 'oauth-start'): self.handlers.oauth_start,
            ('GET', 'callback'): self.handlers.oauth_callback,
            ('POST', 'logout'): self.handlers.logout,
            ('GET', 'session'): self.handlers.session,
        }

    def operation_name(self, path):
        """Strip the route prefix and surrounding slashes from a request path."""
        path = path or ''
        if path == self.prefix or path.startswith(self.prefix + '/'):
            path = path[len(self.prefix):]
        return path.strip('/')

    def preflight(self):
        """Answer a cross-origin pre-flight request."""
        return empty_response(204)

    def dispatch(self, ctx):
        """
        Route one request.

        Wrong method and unknown path look the same to the caller (404).
        Any exception from a handler becomes a generic 500.
        """
        method = ctx.method.upper()
        if method == 'OPTIONS':
            return self.preflight()

        name = self.operation_name(ctx.path)
        handler = self.operations.get((method, name))
        if handler is None:
            return error_response(404, 'Not found')

        try:
            return handler(ctx)
        except Exception:
            logger.exception(f"Unhandled error in auth operation '{name}'")
            return error_response(500, 'Internal server error')
