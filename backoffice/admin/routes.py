"""
Admin Routes
"""

from flask import current_app, g, jsonify
from backoffice.admin import admin_bp
from backoffice.admin.decorators import admin_required


@admin_bp.route('/dashboard')
@admin_required
def admin_dashboard():
    """Admin dashboard entry point: who is logged in and where the API lives."""
    return jsonify(
        user=g.admin_user.to_dict(),
        backend_url=current_app.config['BACKEND_URL'],
    )
