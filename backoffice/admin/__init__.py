"""
Admin Blueprint

Every route here sits behind ``admin_required``.
"""

from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

from backoffice.admin import routes  # noqa: E402, F401
