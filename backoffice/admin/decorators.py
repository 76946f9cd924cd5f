"""
Admin Decorator

Admin access is gated by the session manager alone; protected views never
inspect cookies or the Flask session directly.
"""

from functools import wraps
from flask import g, redirect
from backoffice.auth import get_session_manager


def admin_required(f):
    """Decorator to ensure the request comes from an authenticated operator.

    Anonymous, expired and corrupted sessions all get the same redirect to
    the login URL. On success the checked session is left on ``g.admin_user``.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        response = None

        def send_to_login(url):
            nonlocal response
            response = redirect(url)

        status = get_session_manager().authorize(send_to_login)
        if not status.is_auth:
            return response
        g.admin_user = status.user
        return f(*args, **kwargs)
    return wrapper
