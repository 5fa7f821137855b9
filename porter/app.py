"""Porter - Auth Gateway."""
import os
import logging
from flask import Flask, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix
from porter.config import config
from porter.models import CORS_HEADERS
from porter.api.auth_routes import auth_bp, render_response
from porter.services.router import AuthRouter
from shared.error_handlers import register_error_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(app_config=None, backend_client=None):
    """
    Build the Porter Flask app.

    Args:
        app_config: Config to run with (defaults to the global config)
        backend_client: Identity backend client to share across requests.
                        Built from the config when omitted.
    """
    app_config = app_config or config

    # Set SKIP_ENV_VALIDATION=1 to disable (useful for testing/CI)
    if not os.environ.get('SKIP_ENV_VALIDATION'):
        app_config.validate()

    app = Flask(__name__)
    app.secret_key = app_config.secret_key

    # Trust proxy headers so redirect targets use the public origin
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    router = AuthRouter(app_config, client=backend_client)
    app.extensions['porter_router'] = router

    @app.before_request
    def answer_preflight():
        """Pre-flight requests never reach a handler, whatever the path."""
        if request.method == 'OPTIONS':
            return render_response(router.preflight())

    @app.after_request
    def add_cors_headers(response):
        for header, value in CORS_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    app.register_blueprint(auth_bp, url_prefix=router.prefix)

    # Register error handlers
    register_error_handlers(app, logger)

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'bot': app_config.name,
            'version': app_config.version
        })

    @app.route('/info')
    def info():
        """Bot information endpoint."""
        prefix = router.prefix
        return jsonify({
            'name': app_config.name,
            'description': app_config.description,
            'version': app_config.version,
            'personality': app_config.personality,
            'emoji': '🛎️',
            'endpoints': {
                'auth': {
                    f'POST {prefix}/signup': 'Register with email, password and name',
                    f'POST {prefix}/login': 'Sign in with email and password',
                    f'GET {prefix}/google': 'Start Google OAuth sign-in',
                    f'GET {prefix}/callback': 'OAuth callback (browser only)',
                    f'POST {prefix}/logout': 'Sign out the bearer token',
                    f'GET {prefix}/session': 'Session for the bearer token'
                },
                'system': {
                    '/health': 'Health check',
                    '/info': 'Bot information'
                }
            }
        })

    return app


if __name__ == '__main__':
    app = create_app()

    print("\n" + "="*50)
    print("🛎️  Hi! I'm Porter")
    print("   Auth Gateway")
    print(f"   Running on http://localhost:{config.server_port}")
    print("="*50 + "\n")

    app.run(
        host=config.server_host,
        port=config.server_port,
        debug=os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    )
