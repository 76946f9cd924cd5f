"""
Session Storage

The admin session lives in two places at once: short-lived browser cookies
and a persistent key-value store with no expiry of its own. Every write goes
to both (write-through); reads are done by the session manager, cookies
first.
"""

import logging
from datetime import datetime, timedelta, timezone

from flask import g, request, session

logger = logging.getLogger(__name__)

# Cookie keys
COOKIE_TOKEN_KEY = 'authToken'
COOKIE_SESSION_KEY = 'userData'

# Persistent store keys
PERSISTENT_TOKEN_KEY = 'authToken'
PERSISTENT_SESSION_KEY = 'user'

_PENDING_COOKIES = '_pending_session_cookies'


class StorageError(Exception):
    """Raised when a backing store cannot be read or written."""


class Storage:
    """Minimal key-value port implemented by every backing store."""

    def get(self, key):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError


class MemoryStorage(Storage):
    """Dict-backed store, used for scripting and tests."""

    def __init__(self, initial=None):
        self.data = dict(initial or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)

    def __repr__(self):
        return f'<MemoryStorage keys={sorted(self.data)}>'


class CookieStorage(Storage):
    """Browser cookies with an absolute expiry.

    Reads come from the incoming request. Writes are queued on ``flask.g``
    (so later reads in the same request see them) and copied onto the
    response by :meth:`flush`, which the app installs as an
    ``after_request`` hook.
    """

    def __init__(self, max_age_minutes=30):
        self.max_age = timedelta(minutes=max_age_minutes)

    def _pending(self):
        try:
            return g.setdefault(_PENDING_COOKIES, {})
        except RuntimeError as e:
            raise StorageError(f'cookies unavailable outside a request: {e}') from e

    def get(self, key):
        pending = self._pending()
        if key in pending:
            return pending[key]
        return request.cookies.get(key)

    def set(self, key, value):
        self._pending()[key] = value

    def delete(self, key):
        self._pending()[key] = None

    def flush(self, response):
        """Apply queued cookie writes to the outgoing response."""
        pending = g.pop(_PENDING_COOKIES, None)
        if not pending:
            return response

        secure = request.is_secure
        for key, value in pending.items():
            if value is None:
                response.delete_cookie(key, path='/', secure=secure, samesite='Strict')
                continue
            expires = datetime.now(timezone.utc) + self.max_age
            response.set_cookie(
                key,
                value,
                max_age=self.max_age,
                expires=expires,
                path='/',
                secure=secure,
                samesite='Strict',
            )
        return response


class FlaskSessionStorage(Storage):
    """Persistent store on top of the signed Flask session.

    No expiry metadata is kept next to the values; freshness is decided only
    by the ``loginTime`` inside the stored session record. The session cookie
    itself still lapses after PERMANENT_SESSION_LIFETIME (31 days), which only
    bounds how long an idle browser keeps the copy.
    """

    def get(self, key):
        return session.get(key)

    def set(self, key, value):
        session.permanent = True
        session[key] = value

    def delete(self, key):
        session.pop(key, None)


class SessionStore:
    """Write-through pair of a cookie store and a persistent store."""

    def __init__(self, cookies, persistent):
        self.cookies = cookies
        self.persistent = persistent

    def read_cookies(self):
        """Return ``(token, payload)`` from the cookies."""
        return self.cookies.get(COOKIE_TOKEN_KEY), self.cookies.get(COOKIE_SESSION_KEY)

    def read_persistent(self):
        """Return ``(token, payload)`` from the persistent store."""
        return (self.persistent.get(PERSISTENT_TOKEN_KEY),
                self.persistent.get(PERSISTENT_SESSION_KEY))

    def write_cookies(self, token, payload):
        self.cookies.set(COOKIE_TOKEN_KEY, token)
        self.cookies.set(COOKIE_SESSION_KEY, payload)

    def write_persistent(self, token, payload):
        self.persistent.set(PERSISTENT_TOKEN_KEY, token)
        self.persistent.set(PERSISTENT_SESSION_KEY, payload)

    def write(self, token, payload):
        """Write the token and serialized session to both stores."""
        self.write_cookies(token, payload)
        self.write_persistent(token, payload)

    def clear(self):
        """Delete the session from both stores.

        Every key is attempted even if an earlier delete fails; failures are
        reported together afterwards.
        """
        failures = []
        targets = (
            (self.cookies, (COOKIE_TOKEN_KEY, COOKIE_SESSION_KEY)),
            (self.persistent, (PERSISTENT_TOKEN_KEY, PERSISTENT_SESSION_KEY)),
        )
        for storage, keys in targets:
            for key in keys:
                try:
                    storage.delete(key)
                except Exception as e:
                    logger.warning('Could not delete %s from %r: %s', key, storage, e)
                    failures.append(key)

        if failures:
            raise StorageError(f'could not delete {", ".join(failures)}')
