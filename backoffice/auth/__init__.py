"""
Auth Blueprint

Admin login is session-based against a single configured operator identity;
there is no user database.
"""

from flask import Blueprint, current_app

auth_bp = Blueprint('auth', __name__)

EXTENSION_KEY = 'session_manager'


def get_session_manager():
    """Return the SessionManager bound to the current app."""
    return current_app.extensions[EXTENSION_KEY]


from backoffice.auth import routes  # noqa: E402, F401
