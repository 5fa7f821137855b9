"""
Identity backend client

Wraps the hosted auth-and-storage service Porter fronts:
- Auth endpoints (/auth/v1): sign-up, password sign-in, OAuth, sign-out, user lookup
- Record endpoints (/rest/v1): profile upsert and select

Every call is a single round trip. Nothing is retried here.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import requests

from porter.models import Identity, Profile, Session
from shared.http_client import ServiceHttpClient

logger = logging.getLogger(__name__)

# Keys the backend uses for human-readable error text, most specific first
ERROR_MESSAGE_KEYS = ('error_description', 'msg', 'message', 'error')


class IdentityBackendError(Exception):
    """Base class for identity backend failures"""
    pass


class BackendError(IdentityBackendError):
    """The backend answered, but refused the request"""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class BackendUnavailable(IdentityBackendError):
    """The backend could not be reached or did not answer in time"""
    pass


def _error_message(response) -> str:
    """Pull the backend's own error text out of a failed response."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ERROR_MESSAGE_KEYS:
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get('message'):
                return value['message']

    return f"Identity backend returned {response.status_code}"


class SupabaseClient:
    """Client for the identity backend's auth and record APIs"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = 10,
        oauth_providers: Optional[List[str]] = None,
        profiles_table: str = 'profiles',
    ):
        """
        Initialize the identity backend client.

        Args:
            base_url: Project URL of the backend (e.g. https://abc.supabase.co)
            api_key: Public (anon) API key
            timeout: Request timeout in seconds
            oauth_providers: Providers enabled on the backend
            profiles_table: Record collection holding profiles
        """
        self.http = ServiceHttpClient(base_url, api_key, timeout=timeout)
        self.oauth_providers = [p.lower() for p in (oauth_providers or ['google'])]
        self.profiles_table = profiles_table

    @classmethod
    def from_config(cls, config) -> 'SupabaseClient':
        return cls(
            base_url=config.supabase_url,
            api_key=config.supabase_anon_key,
            timeout=config.backend_timeout,
            oauth_providers=config.oauth_providers,
            profiles_table=config.profiles_table,
        )

    def _call(
        self,
        method: str,
        path: str,
        token: str = None,
        params: Dict[str, Any] = None,
        json: Any = None,
        headers: Dict[str, str] = None,
    ) -> Any:
        """
        Make one request to the backend.

        Returns:
            Parsed JSON reply, or None for an empty reply

        Raises:
            BackendUnavailable: on connection errors and timeouts
            BackendError: on any non-2xx reply
        """
        try:
            response = self.http.request(
                method,
                path,
                token=token,
                headers=headers,
                params=params,
                json=json,
            )
        except requests.RequestException as e:
            logger.warning(f"Identity backend unreachable for {method} {path}: {e}")
            raise BackendUnavailable(str(e)) from e

        if not response.ok:
            message = _error_message(response)
            logger.warning(f"Identity backend rejected {method} {path} ({response.status_code}): {message}")
            raise BackendError(response.status_code, message)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(502, "Identity backend returned an unreadable reply") from e

    @staticmethod
    def _session_pair(data: Dict[str, Any]) -> Tuple[Identity, Session]:
        """Split a token reply into the identity and the session."""
        session = Session.from_backend(data)
        if session.user is None:
            raise BackendError(502, "Identity backend returned a session without a user")
        return session.user, session

    # ─────────────────────────────────────────────────────────────
    # Auth Methods
    # ─────────────────────────────────────────────────────────────

    def sign_up(self, email: str, password: str, display_name: str = None) -> Tuple[Identity, Optional[Session]]:
        """
        Register a new identity.

        Returns:
            (identity, session). Session is None while the backend waits
            for the user to confirm their email address.
        """
        data = self._call('POST', '/auth/v1/signup', json={
            'email': email,
            'password': password,
            'data': {'name': display_name},
        }) or {}

        if data.get('access_token'):
            return self._session_pair(data)

        if data.get('user'):
            identity = Identity.from_backend(data['user'])
            session = Session.from_backend(data['session']) if data.get('session') else None
            return identity, session

        if data.get('id'):
            return Identity.from_backend(data), None

        raise BackendError(502, "Identity backend returned no user")

    def sign_in(self, email: str, password: str) -> Tuple[Identity, Session]:
        """Exchange an email and password for a session."""
        data = self._call(
            'POST',
            '/auth/v1/token',
            params={'grant_type': 'password'},
            json={'email': email, 'password': password},
        ) or {}
        return self._session_pair(data)

    def oauth_authorize_url(self, provider: str, redirect_target: str) -> str:
        """
        Build the URL that starts an OAuth handshake with `provider`.

        The backend sends the browser back to `redirect_target` afterwards.
        """
        provider = (provider or '').lower()
        if provider not in self.oauth_providers:
            raise BackendError(400, f"Unsupported provider: {provider}")

        query = urlencode({'provider': provider, 'redirect_to': redirect_target})
        return f"{self.http.url_for('/auth/v1/authorize')}?{query}"

    def exchange_code(self, code: str) -> Tuple[Identity, Session]:
        """Swap an OAuth authorization code for a session."""
        data = self._call(
            'POST',
            '/auth/v1/token',
            params={'grant_type': 'authorization_code'},
            json={'code': code},
        ) or {}
        return self._session_pair(data)

    def sign_out(self, token: str) -> None:
        """Revoke the session behind `token`."""
        self._call('POST', '/auth/v1/logout', token=token)

    def get_session(self, token: str) -> Optional[Session]:
        """
        Look up the session for an access token.

        Returns:
            Session bound to the token's identity, or None if the token is
            not (or no longer) valid
        """
        try:
            data = self._call('GET', '/auth/v1/user', token=token)
        except BackendError as e:
            if e.status in (401, 403):
                return None
            raise

        if not data:
            return None

        identity = Identity.from_backend(data)
        return Session(access_token=token, user_id=identity.id, user=identity)

    # ─────────────────────────────────────────────────────────────
    # Profile Methods
    # ─────────────────────────────────────────────────────────────

    def upsert_profile(
        self,
        record: Dict[str, Any],
        on_conflict: str = 'id',
        ignore_duplicates: bool = False,
        token: str = None,
    ) -> None:
        """
        Insert a profile row, or update the row sharing its `on_conflict` key.

        With ignore_duplicates=True an existing row is left untouched.
        """
        resolution = 'ignore-duplicates' if ignore_duplicates else 'merge-duplicates'
        self._call(
            'POST',
            f'/rest/v1/{self.profiles_table}',
            token=token,
            params={'on_conflict': on_conflict},
            json=record,
            headers={'Prefer': f'resolution={resolution},return=minimal'},
        )

    def select_profile(self, profile_id: str, token: str = None) -> Optional[Profile]:
        """Fetch the profile for an identity id, None if there is none."""
        rows = self._call(
            'GET',
            f'/rest/v1/{self.profiles_table}',
            token=token,
            params={'id': f'eq.{profile_id}', 'select': '*'},
        )
        if not rows:
            return None
        if not isinstance(rows, list) or not all(isinstance(row, dict) and 'id' in row for row in rows):
            logger.warning(f"Identity backend returned malformed profile rows for {profile_id}")
            raise BackendError(502, "Identity backend returned malformed profile rows")
        return Profile.from_row(rows[0])
