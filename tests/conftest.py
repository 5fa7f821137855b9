"""
Shared pytest fixtures for Porter tests.

This module provides common fixtures used across all test modules including
a test config, the identity backend client, a Flask app wired to a mocked
backend, and identity backend payload factories.
"""
import os
import sys
import pytest
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment before any porter import
os.environ['TESTING'] = '1'
os.environ['SKIP_ENV_VALIDATION'] = '1'

BACKEND_URL = 'https://backend.test'
ANON_KEY = 'test-anon-key'


# ==============================================================================
# Config and Client Fixtures
# ==============================================================================

@pytest.fixture
def porter_config():
    """Porter config pointing at the mocked identity backend."""
    from porter.config import Config
    return Config(
        supabase_url=BACKEND_URL,
        supabase_anon_key=ANON_KEY,
        secret_key='test-secret-key-for-testing-only',
    )


@pytest.fixture
def backend_client(porter_config):
    """Identity backend client bound to the mocked backend."""
    from porter.services.supabase_client import SupabaseClient
    return SupabaseClient.from_config(porter_config)


@pytest.fixture
def porter_app(porter_config):
    """Porter Flask app for testing."""
    from porter.app import create_app
    app = create_app(porter_config)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(porter_app):
    """Create test client."""
    return porter_app.test_client()


# ==============================================================================
# Identity Backend Payload Factories
# ==============================================================================

@pytest.fixture
def sample_user():
    """User object as the identity backend returns it."""
    return {
        'id': 'user-123',
        'email': 'testuser@example.com',
        'role': 'authenticated',
        'user_metadata': {
            'name': 'Test User',
            'avatar_url': 'https://cdn.example.com/avatar.png',
        },
    }


@pytest.fixture
def sample_token_reply(sample_user):
    """Token endpoint reply carrying a session and its user."""
    return {
        'access_token': 'access-abc',
        'refresh_token': 'refresh-xyz',
        'token_type': 'bearer',
        'expires_in': 3600,
        'expires_at': 1736938800,
        'user': sample_user,
    }


# ==============================================================================
# HTTP Mock Fixtures
# ==============================================================================

@pytest.fixture
def mock_responses():
    """Fixture to mock HTTP responses using responses library."""
    import responses as responses_lib
    with responses_lib.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


# ==============================================================================
# Time-related Fixtures
# ==============================================================================

@pytest.fixture
def frozen_time():
    """Fixture to freeze time for testing."""
    from freezegun import freeze_time
    with freeze_time('2025-01-15 10:00:00'):
        yield


# ==============================================================================
# In-memory Identity Backend
# ==============================================================================

class FakeIdentityBackend:
    """
    In-memory stand-in for the identity backend client.

    Mirrors the client's contract, including upsert-on-conflict semantics for
    profiles, and records every call in `calls`.
    """

    def __init__(self):
        from porter.services.supabase_client import BackendError
        self.BackendError = BackendError
        self.users = {}
        self.tokens = {}
        self.codes = {}
        self.profiles = {}
        self.calls = []
        self.fail_profile_writes = False
        self._counter = 0

    def _issue_session(self, user):
        from porter.models import Session
        self._counter += 1
        access_token = f'access-{self._counter}'
        self.tokens[access_token] = user['id']
        return Session.from_backend({
            'access_token': access_token,
            'refresh_token': f'refresh-{self._counter}',
            'token_type': 'bearer',
            'expires_in': 3600,
            'user': user,
        })

    def add_user(self, email, password, metadata=None):
        self._counter += 1
        user = {
            'id': f'user-{self._counter}',
            'email': email,
            'user_metadata': metadata or {},
        }
        self.users[email] = (password, user)
        return user

    def add_oauth_code(self, code, email, metadata=None):
        user = self.add_user(email, None, metadata)
        self.codes[code] = user
        return user

    def sign_up(self, email, password, display_name=None):
        from porter.models import Identity
        self.calls.append(('sign_up', email))
        if not email or not password:
            raise self.BackendError(400, 'Signup requires a valid password')
        if email in self.users:
            raise self.BackendError(422, 'User already registered')
        user = self.add_user(email, password, {'name': display_name})
        session = self._issue_session(user)
        return Identity.from_backend(user), session

    def sign_in(self, email, password):
        from porter.models import Identity
        self.calls.append(('sign_in', email))
        stored = self.users.get(email)
        if not stored or stored[0] != password:
            raise self.BackendError(400, 'Invalid login credentials')
        user = stored[1]
        return Identity.from_backend(user), self._issue_session(user)

    def oauth_authorize_url(self, provider, redirect_target):
        from urllib.parse import urlencode
        self.calls.append(('oauth_authorize_url', provider))
        if provider != 'google':
            raise self.BackendError(400, f'Unsupported provider: {provider}')
        query = urlencode({'provider': provider, 'redirect_to': redirect_target})
        return f'{BACKEND_URL}/auth/v1/authorize?{query}'

    def exchange_code(self, code):
        from porter.models import Identity
        self.calls.append(('exchange_code', code))
        user = self.codes.pop(code, None)
        if user is None:
            raise self.BackendError(400, 'invalid flow state, no valid flow state found')
        return Identity.from_backend(user), self._issue_session(user)

    def sign_out(self, token):
        self.calls.append(('sign_out', token))
        self.tokens.pop(token, None)

    def get_session(self, token):
        from porter.models import Identity, Session
        self.calls.append(('get_session', token))
        user_id = self.tokens.get(token)
        if user_id is None:
            return None
        user = next(u for _, u in self.users.values() if u['id'] == user_id)
        identity = Identity.from_backend(user)
        return Session(access_token=token, user_id=user_id, user=identity)

    def upsert_profile(self, record, on_conflict='id', ignore_duplicates=False, token=None):
        self.calls.append(('upsert_profile', record[on_conflict]))
        if self.fail_profile_writes:
            raise self.BackendError(500, 'permission denied for table profiles')
        existing = self.profiles.get(record[on_conflict])
        if existing is None:
            self.profiles[record[on_conflict]] = dict(record)
        elif not ignore_duplicates:
            existing.update(record)

    def select_profile(self, profile_id, token=None):
        from porter.models import Profile
        self.calls.append(('select_profile', profile_id))
        if self.fail_profile_writes:
            raise self.BackendError(500, 'permission denied for table profiles')
        row = self.profiles.get(profile_id)
        return Profile.from_row(row) if row else None

    def called(self, name):
        return [args for call, args in self.calls if call == name]


@pytest.fixture
def fake_backend():
    """In-memory identity backend."""
    return FakeIdentityBackend()


@pytest.fixture
def fake_app(porter_config, fake_backend):
    """Porter Flask app wired to the in-memory identity backend."""
    from porter.app import create_app
    app = create_app(porter_config, backend_client=fake_backend)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def fake_client(fake_app):
    """Test client for the app backed by the in-memory identity backend."""
    return fake_app.test_client()
