"""Flask application factory."""
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
import logging
import os

__version__ = '1.0.0'


def create_app(config_object='config.Config', state=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize Sentry for error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Production: Enable ProxyFix so rate limiting sees the real client address
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize process-lifetime state (catalog, stock, sessions, users...)
    from shopmock.state import init_state
    state = init_state(app, state)

    # Setup Prometheus metrics instrumentation
    from shopmock.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app, state)

    # Identity first, so the rate limiter can pick the caller's tier
    from shopmock.middleware import load_identity, enforce_rate_limit, apply_rate_limit_headers

    @app.before_request
    def before_request_handler():
        """Resolve identity and apply admission control for each request."""
        load_identity()
        if app.config.get('RATE_LIMIT_ENABLED', True):
            enforce_rate_limit()

    app.after_request(apply_rate_limit_headers)

    # Error Handlers
    from shopmock.exceptions import ShopError

    @app.errorhandler(ShopError)
    def handle_shop_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"ShopError [{error.status_code}] {error.kind}: {error.message}")
        else:
            app.logger.info(f"ShopError [{error.status_code}] {error.kind}: {error.message}")

        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        retry_after = getattr(error, 'retry_after_seconds', None)
        if retry_after is not None:
            response.headers['Retry-After'] = str(retry_after)
        return response

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Route not found', 'kind': 'NotFound'}), 404

    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'error': error.description, 'kind': error.name}), error.code

        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'error': 'Internal Server Error', 'kind': 'InternalError'}), 500

    # Register blueprints
    from shopmock.blueprints.main import main_bp
    from shopmock.blueprints.auth import auth_bp
    from shopmock.blueprints.catalog import catalog_bp
    from shopmock.blueprints.cart import cart_bp
    from shopmock.blueprints.admin import admin_bp
    from shopmock.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(metrics_bp)

    app.logger.info(f"shopmock {__version__} ready (rate limiting: {app.config.get('RATE_LIMIT_ENABLED')})")

    return app
