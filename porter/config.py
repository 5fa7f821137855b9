"""Configuration loader for Porter."""
import os
import yaml
from pathlib import Path
from dotenv import load_dotenv
from shared.config.env_loader import SHARED_ENV  # noqa: F401
from shared.config.env_validator import validate_env

# Load environment variables from .env file
load_dotenv()

CALLBACK_DELIVERY_MODES = ("fragment", "html")


class Config:
    """Configuration management for Porter."""

    def __init__(self, config_path=None, **overrides):
        """
        Load config.yaml and the environment.

        Args:
            config_path: Alternative YAML file (defaults to porter/config.yaml)
            **overrides: Attribute values that replace whatever was loaded,
                         e.g. Config(supabase_url="http://backend.test")
        """
        base_dir = Path(__file__).parent
        config_path = Path(config_path) if config_path else base_dir / "config.yaml"

        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        # Bot info
        self.name = data.get("name", "Porter")
        self.description = data.get("description", "")
        self.version = data.get("version", "1.0.0")
        self.personality = data.get("personality", "")

        # Server config
        server_cfg = data.get("server", {}) or {}
        self.server_host = server_cfg.get("host", "0.0.0.0")
        self.server_port = server_cfg.get("port", 8040)

        # Routing
        routing_cfg = data.get("routing", {}) or {}
        self.route_prefix = routing_cfg.get("prefix", "/api/auth")

        # OAuth callback hand-back
        callback_cfg = data.get("callback", {}) or {}
        self.callback_path = callback_cfg.get("path", "/api/auth/callback")
        self.login_page = callback_cfg.get("login_page", "/login.html")
        self.app_page = callback_cfg.get("app_page", "/app.html")
        self.callback_delivery = callback_cfg.get("delivery", "fragment")

        # OAuth providers the backend has enabled
        oauth_cfg = data.get("oauth", {}) or {}
        self.default_oauth_provider = oauth_cfg.get("default_provider", "google")
        self.oauth_providers = [p.lower() for p in oauth_cfg.get("providers", ["google"])]

        # Identity backend
        backend_cfg = data.get("backend", {}) or {}
        self.backend_timeout = backend_cfg.get("timeout", 10)
        self.profiles_table = backend_cfg.get("profiles_table", "profiles")

        # Identity backend endpoint and public key (env)
        self.supabase_url = os.environ.get("SUPABASE_URL", "")
        self.supabase_anon_key = os.environ.get("SUPABASE_ANON_KEY", "")

        # Flask secret key (env)
        self.secret_key = os.environ.get(
            "FLASK_SECRET_KEY",
            "dev-secret-key-change-in-production",
        )

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown config setting: {key}")
            setattr(self, key, value)

    def validate(self, strict: bool = False) -> bool:
        """
        Check that the identity backend settings are usable.

        Raises:
            EnvValidationError: listing every missing or placeholder variable
            ValueError: if callback.delivery is not a known mode
        """
        if self.callback_delivery not in CALLBACK_DELIVERY_MODES:
            raise ValueError(
                f"callback.delivery must be one of {', '.join(CALLBACK_DELIVERY_MODES)}, "
                f"got '{self.callback_delivery}'"
            )

        return validate_env({
            "SUPABASE_URL": (self.supabase_url, "Base URL of the identity backend project"),
            "SUPABASE_ANON_KEY": (self.supabase_anon_key, "Public (anon) API key of the identity backend"),
        }, strict=strict)


# Global config instance
config = Config()
