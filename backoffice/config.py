"""
Configuration settings for the Agency Back Office
"""
import os
from datetime import timedelta


class Config:
    """Flask application configuration"""

    # Flask secret key for the signed session (persistent local store)
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production-12345'
    SESSION_COOKIE_SAMESITE = 'Strict'
    # Lifetime of the signed session holding the persistent copy. Session
    # freshness is decided by loginTime, not by this.
    PERMANENT_SESSION_LIFETIME = timedelta(days=31)

    # Base URL of the REST API the public pages and admin screens talk to
    BACKEND_URL = os.environ.get('BACKEND_URL') or 'http://localhost:5000'

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # ---------------------------------------------------------------------
    # Operator credentials
    # A single fixed identity gates the admin area; there is no user table.
    # ---------------------------------------------------------------------
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL') or 'contact@kayease.com'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'Kayease@123'
    ADMIN_NAME = os.environ.get('ADMIN_NAME') or 'Admin User'

    # Presence marker written next to the session record
    AUTH_TOKEN = os.environ.get('AUTH_TOKEN') or 'Kayease-admin-token'

    # Sliding expiry (minutes)
    SESSION_TIMEOUT_MINUTES = 30
    SESSION_REFRESH_AFTER_MINUTES = 25

    LOGIN_URL = '/login'


class TestConfig(Config):
    """Testing configuration"""
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    LOG_LEVEL = 'DEBUG'
