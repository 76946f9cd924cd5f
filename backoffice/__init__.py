"""
Agency Back Office - Application Factory

This module provides the Flask application factory pattern for creating
and configuring the application instance.
"""

import logging

from flask import Flask
from backoffice.config import Config
from backoffice.auth import EXTENSION_KEY
from backoffice.auth.session import SessionManager
from backoffice.auth.storage import CookieStorage, FlaskSessionStorage, SessionStore


def create_app(config_class=Config, clock=None):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use (default: Config)
        clock: Optional callable returning the current aware datetime,
            handed to the session manager

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(app)

    # Session manager: 30-minute cookies backed by the signed Flask session
    cookies = CookieStorage(max_age_minutes=app.config['SESSION_TIMEOUT_MINUTES'])
    store = SessionStore(cookies=cookies, persistent=FlaskSessionStorage())
    app.extensions[EXTENSION_KEY] = SessionManager.from_config(app.config, store, clock=clock)
    app.after_request(cookies.flush)

    # Register blueprints
    from backoffice.auth import auth_bp
    from backoffice.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')

    app.logger.debug('Back office app created (testing=%s)', app.testing)
    return app


def _configure_logging(app):
    """Set up root logging once, at the configured level."""
    level = app.config.get('LOG_LEVEL', 'INFO')
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        )
    logging.getLogger('backoffice').setLevel(level)
