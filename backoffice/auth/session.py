"""
Admin Session Manager

Login, validity checks and logout for the single operator identity that
gates the admin area. Sessions use a sliding expiry: a check made more than
SESSION_REFRESH_AFTER_MINUTES after the last refresh moves ``loginTime``
forward, a check made more than SESSION_TIMEOUT_MINUTES after it logs the
operator out. Expiry is only observed when a check runs; nothing is timed
in the background.

Expired, corrupt and missing sessions are all reported to callers the same
way (not authenticated). The reason only goes to the log.
"""

import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)

ADMIN_ROLE = 'Admin'
INVALID_CREDENTIALS = 'Invalid email or password'
SESSION_UNAVAILABLE = 'Unable to start a session, please try again'

REQUIRED_FIELDS = ('loginTime', 'email', 'name')


class CorruptSessionError(ValueError):
    """Stored session data that cannot be trusted."""


def utcnow():
    return datetime.now(timezone.utc)


def format_timestamp(moment):
    """ISO-8601 in UTC with millisecond precision, e.g. 2026-10-17T09:30:00.000Z"""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S') + f'.{moment.microsecond // 1000:03d}Z'


def parse_timestamp(value):
    if not isinstance(value, str):
        raise CorruptSessionError(f'loginTime is not a string: {value!r}')
    text = value[:-1] + '+00:00' if value.endswith('Z') else value
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as e:
        raise CorruptSessionError(f'loginTime is not a timestamp: {value!r}') from e
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass
class Session:
    """The record proving the operator is logged in."""
    name: str
    email: str
    role: str
    login_time: str

    def to_dict(self):
        return {
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'loginTime': self.login_time,
        }

    def to_json(self):
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def from_json(cls, payload):
        """Parse a stored session, raising CorruptSessionError on bad data."""
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise CorruptSessionError(f'session is not valid JSON: {e}') from e

        if not isinstance(data, dict):
            raise CorruptSessionError('session is not a JSON object')

        missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
        if missing:
            raise CorruptSessionError(f'session is missing {", ".join(missing)}')

        parse_timestamp(data['loginTime'])
        return cls(
            name=data['name'],
            email=data['email'],
            role=data.get('role') or ADMIN_ROLE,
            login_time=data['loginTime'],
        )


@dataclass
class LoginResult:
    success: bool
    user: Session = None
    error: str = None

    def to_dict(self):
        if self.success:
            return {'success': True, 'user': self.user.to_dict()}
        return {'success': False, 'error': self.error}


@dataclass
class AuthStatus:
    is_auth: bool
    user: Session = None

    def to_dict(self):
        return {'isAuth': self.is_auth, 'user': self.user.to_dict() if self.user else None}


class SessionManager:
    """Establishes, validates, refreshes and tears down the admin session.

    Args:
        email: Operator email (compared case-insensitively)
        password: Operator password (compared exactly)
        store: SessionStore writing through to cookies and a persistent store
        name: Display name put in the session record
        token: Fixed presence marker stored next to the session
        timeout_minutes: Age after which a session is expired
        refresh_after_minutes: Age after which a check refreshes ``loginTime``
        login_url: Passed to the redirect callback of :meth:`require_auth`
        clock: Callable returning the current aware datetime
    """

    def __init__(self, email, password, store, name='Admin User',
                 token='Kayease-admin-token', timeout_minutes=30,
                 refresh_after_minutes=25, login_url='/login', clock=None):
        self.email = email
        self.password = password
        self.store = store
        self.name = name
        self.token = token
        self.timeout = timedelta(minutes=timeout_minutes)
        self.refresh_after = timedelta(minutes=refresh_after_minutes)
        self.login_url = login_url
        self.clock = clock or utcnow

    @classmethod
    def from_config(cls, config, store, clock=None):
        """Build a manager from a Flask config mapping."""
        return cls(
            email=config['ADMIN_EMAIL'],
            password=config['ADMIN_PASSWORD'],
            store=store,
            name=config.get('ADMIN_NAME', 'Admin User'),
            token=config.get('AUTH_TOKEN', 'Kayease-admin-token'),
            timeout_minutes=config.get('SESSION_TIMEOUT_MINUTES', 30),
            refresh_after_minutes=config.get('SESSION_REFRESH_AFTER_MINUTES', 25),
            login_url=config.get('LOGIN_URL', '/login'),
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    def login(self, email, password):
        """Start a session if the credentials match the operator's."""
        if not self._credentials_match(email, password):
            logger.info('Rejected admin login attempt')
            return LoginResult(success=False, error=INVALID_CREDENTIALS)

        user = Session(
            name=self.name,
            email=self.email,
            role=ADMIN_ROLE,
            login_time=format_timestamp(self.clock()),
        )
        try:
            self.store.write(self.token, user.to_json())
        except Exception as e:
            logger.error('Could not store admin session: %s', e)
            self.logout()
            return LoginResult(success=False, error=SESSION_UNAVAILABLE)

        logger.info('Admin %s logged in', user.email)
        return LoginResult(success=True, user=user)

    def logout(self):
        """Clear the session from both stores. Safe to call repeatedly."""
        try:
            self.store.clear()
        except Exception as e:
            logger.error('Could not fully clear admin session: %s', e)

    def _credentials_match(self, email, password):
        if not isinstance(email, str) or not isinstance(password, str):
            return False
        email_ok = email.strip().lower() == self.email.lower()
        password_ok = hmac.compare_digest(password.encode('utf-8', 'surrogatepass'),
                                          self.password.encode('utf-8', 'surrogatepass'))
        return email_ok and password_ok

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def is_authenticated(self):
        """Return an AuthStatus. Never raises."""
        try:
            return self._check()
        except Exception:
            logger.exception('Admin session check failed')
            return AuthStatus(is_auth=False)

    def require_auth(self, redirect_fn):
        """Entry guard for protected pages.

        Calls ``redirect_fn(login_url)`` and returns False when there is no
        valid session, otherwise returns True.
        """
        return self.authorize(redirect_fn).is_auth

    def authorize(self, redirect_fn):
        """Like :meth:`require_auth`, but return the AuthStatus so callers can
        use the checked (possibly refreshed) session without checking again.
        """
        status = self.is_authenticated()
        if not status.is_auth:
            redirect_fn(self.login_url)
        return status

    def _check(self):
        now = self.clock()

        token, payload = self.store.read_cookies()
        if token and payload:
            checked = self._validate(payload, now, 'cookies')
            if checked is None:
                return AuthStatus(is_auth=False)
            user, age = checked
            if age > self.refresh_after:
                return AuthStatus(is_auth=True, user=self._refresh(user, now))
            self._sync_persistent(payload)
            return AuthStatus(is_auth=True, user=user)

        token, payload = self.store.read_persistent()
        if token and payload:
            checked = self._validate(payload, now, 'persistent store')
            if checked is None:
                return AuthStatus(is_auth=False)
            user, age = checked
            if age > self.refresh_after:
                return AuthStatus(is_auth=True, user=self._refresh(user, now))
            logger.debug('Rebuilding session cookies from the persistent store')
            self.store.write_cookies(self.token, payload)
            return AuthStatus(is_auth=True, user=user)

        return AuthStatus(is_auth=False)

    def _validate(self, payload, now, source):
        """Return ``(session, age)``, or None after logging out."""
        try:
            user = Session.from_json(payload)
            age = now - parse_timestamp(user.login_time)
        except CorruptSessionError as e:
            logger.warning('Discarding corrupt session from %s: %s', source, e)
            self.logout()
            return None

        if age > self.timeout:
            logger.info('Admin session expired after %s', age)
            self.logout()
            return None
        return user, age

    def _refresh(self, user, now):
        refreshed = Session(
            name=user.name,
            email=user.email,
            role=user.role,
            login_time=format_timestamp(now),
        )
        self.store.write(self.token, refreshed.to_json())
        logger.debug('Refreshed admin session for %s', user.email)
        return refreshed

    def _sync_persistent(self, payload):
        if self.store.read_persistent() != (self.token, payload):
            logger.debug('Copying session cookies into the persistent store')
            self.store.write_persistent(self.token, payload)
