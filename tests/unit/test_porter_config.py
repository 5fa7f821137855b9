"""
Unit tests for Porter configuration, environment validation and the shared
bearer token helper.
"""
import logging
import pytest

from porter.config import Config
from shared.auth import extract_bearer_token
from shared.config.env_validator import EnvValidationError, validate_env


@pytest.mark.unit
@pytest.mark.porter
class TestPorterConfig:
    """Test Config loading."""

    def test_defaults_from_yaml(self):
        config = Config()

        assert config.name == 'Porter'
        assert config.route_prefix == '/api/auth'
        assert config.callback_path == '/api/auth/callback'
        assert config.login_page == '/login.html'
        assert config.app_page == '/app.html'
        assert config.callback_delivery == 'fragment'
        assert config.oauth_providers == ['google']

    def test_env_supplies_backend(self, monkeypatch):
        monkeypatch.setenv('SUPABASE_URL', 'https://env-project.supabase.co')
        monkeypatch.setenv('SUPABASE_ANON_KEY', 'env-anon-key')

        config = Config()

        assert config.supabase_url == 'https://env-project.supabase.co'
        assert config.supabase_anon_key == 'env-anon-key'

    def test_overrides(self):
        config = Config(supabase_url='https://backend.test', callback_delivery='html')

        assert config.supabase_url == 'https://backend.test'
        assert config.callback_delivery == 'html'

    def test_unknown_override(self):
        with pytest.raises(TypeError):
            Config(supabase_urll='https://backend.test')

    def test_alternative_yaml(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text('routing:\n  prefix: /auth\noauth:\n  providers: [Google, GitHub]\n')

        config = Config(config_path=path)

        assert config.route_prefix == '/auth'
        assert config.oauth_providers == ['google', 'github']

    def test_validate_passes(self, porter_config):
        assert porter_config.validate() is True

    def test_validate_missing_backend(self):
        config = Config(supabase_url='', supabase_anon_key='')

        with pytest.raises(EnvValidationError) as exc_info:
            config.validate()

        assert 'SUPABASE_URL' in str(exc_info.value)
        assert 'SUPABASE_ANON_KEY' in str(exc_info.value)

    def test_validate_bad_delivery_mode(self, porter_config):
        porter_config.callback_delivery = 'carrier-pigeon'

        with pytest.raises(ValueError):
            porter_config.validate()

    def test_create_app_validates(self, monkeypatch):
        from porter.app import create_app
        monkeypatch.delenv('SKIP_ENV_VALIDATION')

        with pytest.raises(EnvValidationError):
            create_app(Config(supabase_url='', supabase_anon_key=''))


@pytest.mark.unit
@pytest.mark.porter
class TestEnvValidator:
    """Test the shared environment validator."""

    def test_placeholder_is_a_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert validate_env({'SUPABASE_URL': ('https://your-project.supabase.co', 'URL')}) is True

        assert 'placeholder value: SUPABASE_URL' in caplog.text

    def test_placeholder_fails_when_strict(self):
        with pytest.raises(EnvValidationError):
            validate_env({'SUPABASE_URL': ('https://your-project.supabase.co', 'URL')}, strict=True)


@pytest.mark.unit
@pytest.mark.porter
class TestBearerToken:
    """Test bearer token extraction."""

    @pytest.mark.parametrize('headers,expected', [
        ({'Authorization': 'Bearer abc'}, 'abc'),
        ({'Authorization': 'bearer abc'}, 'abc'),
        ({'authorization': 'Bearer abc'}, 'abc'),
        ({'Authorization': 'Bearer   abc  '}, 'abc'),
        ({'Authorization': 'Basic dXNlcjpwdw=='}, None),
        ({'Authorization': 'Bearer'}, None),
        ({}, None),
    ])
    def test_extract(self, headers, expected):
        assert extract_bearer_token(headers) == expected
