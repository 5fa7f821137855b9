"""
Auth operation handlers for Porter.

One method per operation. Each takes a RequestContext, talks to the identity
backend (and the profile reconciler where a new identity may appear), and
returns a ResponseDescriptor. Handlers hold no per-request state.
"""

import logging
from urllib.parse import urlencode

from jinja2 import Environment

from porter.models import (
    error_response,
    html_response,
    json_response,
    redirect_response,
)
from porter.services.supabase_client import BackendError, IdentityBackendError
from shared.auth import extract_bearer_token

logger = logging.getLogger(__name__)

# Error markers appended to the login page after a failed OAuth callback
NO_CODE_MARKER = 'no_code'
AUTH_FAILED_MARKER = 'auth_failed'

_templates = Environment(autoescape=True)

BOOTSTRAP_TEMPLATE = _templates.from_string('''<!DOCTYPE html>
<html>
<head><title>Signing in</title></head>
<body style="font-family: sans-serif; max-width: 600px; margin: 50px auto; text-align: center;">
    <p>Signing you in...</p>
    <script>
        localStorage.setItem('access_token', {{ access_token|tojson }});
        {% if refresh_token %}localStorage.setItem('refresh_token', {{ refresh_token|tojson }});{% endif %}
        window.location.replace({{ app_url|tojson }});
    </script>
</body>
</html>
''')


class AuthHandlers:
    """The six authentication operations"""

    def __init__(self, client, reconciler, config):
        """
        Args:
            client: Identity backend client
            reconciler: ProfileReconciler sharing the same client
            config: Porter Config (callback pages, delivery mode, providers)
        """
        self.client = client
        self.reconciler = reconciler
        self.config = config

    def signup(self, ctx):
        """Register a user, create their profile, return {user, session}."""
        name = ctx.body_value('name')

        try:
            identity, session = self.client.sign_up(
                ctx.body_value('email'),
                ctx.body_value('password'),
                name,
            )
        except BackendError as e:
            return error_response(400, e.message)

        self.reconciler.ensure_profile(
            identity,
            display_name=name,
            token=session.access_token if session else None,
        )

        # Session is None until the user confirms their email address
        return json_response(200, {
            'user': identity.to_dict(),
            'session': session.to_dict() if session else None,
        })

    def login(self, ctx):
        """Password sign-in. Bad credentials are always a 401."""
        try:
            identity, session = self.client.sign_in(
                ctx.body_value('email'),
                ctx.body_value('password'),
            )
        except BackendError as e:
            return error_response(401, e.message)

        return json_response(200, {
            'user': identity.to_dict(),
            'session': session.to_dict(),
        })

    def oauth_start(self, ctx):
        """Send the browser to the provider's consent screen."""
        provider = (
            ctx.query.get('provider')
            or ctx.body_value('provider')
            or self.config.default_oauth_provider
        )
        redirect_target = f"{ctx.origin}{self.config.callback_path}"

        try:
            authorize_url = self.client.oauth_authorize_url(provider, redirect_target)
        except BackendError as e:
            return error_response(400, e.message)

        return redirect_response(authorize_url)

    def oauth_callback(self, ctx):
        """
        Finish an OAuth handshake and hand the session to the browser.

        Failures never surface as errors: the browser is sent back to the
        login page with an `error` marker instead.
        """
        code = ctx.query.get('code')
        access_token = ctx.query.get('access_token')

        if not code and not access_token:
            return self._login_redirect(ctx, NO_CODE_MARKER)

        if access_token:
            # Backend already finished the exchange (implicit flow)
            return self._deliver_tokens(ctx, access_token, ctx.query.get('refresh_token'))

        try:
            identity, session = self.client.exchange_code(code)
        except Exception as e:
            logger.error(f"OAuth code exchange failed: {e}")
            return self._login_redirect(ctx, AUTH_FAILED_MARKER)

        self.reconciler.ensure_profile(identity, token=session.access_token)

        return self._deliver_tokens(ctx, session.access_token, session.refresh_token)

    def logout(self, ctx):
        """
        Revoke the caller's session.

        Best-effort: the backend's answer never changes the result, since an
        expired or revoked token is already unusable.
        """
        token = extract_bearer_token(ctx.headers)

        if token:
            try:
                self.client.sign_out(token)
            except IdentityBackendError as e:
                logger.warning(f"Sign-out not confirmed by identity backend: {e}")

        return json_response(200, {'success': True})

    def session(self, ctx):
        """Return the session behind the caller's bearer token, or null."""
        token = extract_bearer_token(ctx.headers)
        if not token:
            return json_response(200, {'session': None})

        try:
            session = self.client.get_session(token)
        except BackendError as e:
            return error_response(400, e.message)

        return json_response(200, {'session': session.to_dict() if session else None})

    def _login_redirect(self, ctx, marker):
        query = urlencode({'error': marker})
        return redirect_response(f"{ctx.origin}{self.config.login_page}?{query}")

    def _deliver_tokens(self, ctx, access_token, refresh_token):
        """Hand tokens to the browser without putting them in a query string."""
        app_url = f"{ctx.origin}{self.config.app_page}"

        if self.config.callback_delivery == 'html':
            return html_response(200, BOOTSTRAP_TEMPLATE.render(
                access_token=access_token,
                refresh_token=refresh_token,
                app_url=app_url,
            ))

        tokens = {'access_token': access_token}
        if refresh_token:
            tokens['refresh_token'] = refresh_token
        return redirect_response(f"{app_url}#{urlencode(tokens)}")
