"""
Auth Routes

Login, logout and session status for the admin area. Responses are JSON;
pages are rendered by the frontend.
"""

from flask import jsonify, redirect, request, url_for
from backoffice.auth import auth_bp, get_session_manager


def _credentials_from_request():
    """Read email/password from a JSON body or a submitted form."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form
    return data.get('email') or '', data.get('password') or ''


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Operator login."""
    manager = get_session_manager()

    if request.method == 'GET':
        if manager.is_authenticated().is_auth:
            return redirect(url_for('admin.admin_dashboard'))
        return jsonify(authenticated=False)

    email, password = _credentials_from_request()
    if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
        return jsonify(success=False, error='Please enter both email and password.'), 400

    result = manager.login(email, password)
    if not result.success:
        return jsonify(result.to_dict()), 401
    return jsonify(result.to_dict())


@auth_bp.route('/logout', methods=['GET', 'POST'])
def logout():
    """Clear the admin session from cookies and the persistent store."""
    get_session_manager().logout()
    return jsonify(success=True)


@auth_bp.route('/session')
def session_status():
    """Report whether the caller holds a valid admin session."""
    status = get_session_manager().is_authenticated()
    return jsonify(status.to_dict())
