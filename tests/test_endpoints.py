import json
from datetime import datetime, timedelta, timezone

import pytest

from backoffice import create_app
from backoffice.config import TestConfig
from backoffice.auth.session import format_timestamp

NOW = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock(NOW)


@pytest.fixture()
def client(clock):
    app = create_app(TestConfig, clock=clock)
    return app.test_client()


def login(client, email='contact@kayease.com', password='Kayease@123', **kwargs):
    return client.post('/login', json={'email': email, 'password': password}, **kwargs)


def cookie_session(client):
    cookie = client.get_cookie('userData')
    return json.loads(cookie.decoded_value) if cookie else None


def test_unauthenticated_redirects(client):
    r = client.get('/admin/dashboard')
    assert r.status_code == 302
    assert r.headers['Location'].endswith('/login')

    r = client.get('/session')
    assert r.get_json() == {'isAuth': False, 'user': None}


def test_login_and_dashboard(client):
    r = login(client)
    assert r.status_code == 200
    data = r.get_json()
    assert data['success'] is True
    assert data['user']['role'] == 'Admin'
    assert data['user']['loginTime'] == '2026-10-17T09:30:00.000Z'

    r = client.get('/admin/dashboard')
    assert r.status_code == 200
    assert r.get_json()['user']['email'] == 'contact@kayease.com'

    # Logged-in operators skip the login screen
    r = client.get('/login')
    assert r.status_code == 302
    assert r.headers['Location'].endswith('/admin/dashboard')


def test_login_sets_session_cookies(client):
    r = login(client)

    headers = r.headers.getlist('Set-Cookie')
    token_header = next(h for h in headers if h.startswith('authToken='))
    assert token_header.startswith('authToken=Kayease-admin-token;')
    assert 'SameSite=Strict' in token_header
    assert 'Path=/' in token_header
    assert 'Expires=' in token_header
    assert 'Secure' not in token_header

    assert cookie_session(client) == r.get_json()['user']
    with client.session_transaction() as sess:
        assert sess['authToken'] == 'Kayease-admin-token'
        assert json.loads(sess['user']) == r.get_json()['user']


def test_login_over_https_uses_secure_cookies(client):
    r = login(client, base_url='https://localhost')
    token_header = next(h for h in r.headers.getlist('Set-Cookie') if h.startswith('authToken='))
    assert 'Secure' in token_header


def test_login_accepts_form_data(client):
    r = client.post('/login', data={'email': 'Contact@Kayease.com', 'password': 'Kayease@123'})
    assert r.status_code == 200
    assert r.get_json()['success'] is True


def test_login_rejects_untrimmed_password(client):
    r = login(client, password='Kayease@123 ')
    assert r.status_code == 401
    assert r.get_json() == {'success': False, 'error': 'Invalid email or password'}
    assert client.get_cookie('authToken') is None


def test_login_requires_both_fields(client):
    r = login(client, password='')
    assert r.status_code == 400
    assert r.get_json()['success'] is False


def test_logout_clears_session(client):
    login(client)

    r = client.post('/logout')
    assert r.get_json() == {'success': True}
    assert client.get_cookie('authToken') is None
    assert client.get_cookie('userData') is None
    with client.session_transaction() as sess:
        assert 'user' not in sess

    r = client.get('/admin/dashboard')
    assert r.status_code == 302

    # Logging out again is harmless
    r = client.get('/logout')
    assert r.status_code == 200


def test_session_refreshes_after_25_minutes(client, clock):
    login(client)
    clock.advance(minutes=26)

    r = client.get('/session')
    data = r.get_json()
    assert data['isAuth'] is True
    assert data['user']['loginTime'] == format_timestamp(clock.now)

    assert cookie_session(client)['loginTime'] == format_timestamp(clock.now)
    with client.session_transaction() as sess:
        assert json.loads(sess['user'])['loginTime'] == format_timestamp(clock.now)


def test_session_expires_after_30_minutes(client, clock):
    login(client)
    clock.advance(minutes=31)

    r = client.get('/admin/dashboard')
    assert r.status_code == 302

    assert client.get_cookie('authToken') is None
    with client.session_transaction() as sess:
        assert 'user' not in sess
    assert client.get('/session').get_json()['isAuth'] is False


def test_cookies_rebuilt_from_persistent_store(client):
    login(client)
    client.delete_cookie('authToken')
    client.delete_cookie('userData')

    r = client.get('/session')
    assert r.get_json()['isAuth'] is True

    with client.session_transaction() as sess:
        assert cookie_session(client) == json.loads(sess['user'])


def test_corrupt_cookie_logs_out(client):
    login(client)
    client.set_cookie('userData', 'not-json')

    r = client.get('/session')
    assert r.get_json()['isAuth'] is False

    assert client.get_cookie('authToken') is None
    assert client.get_cookie('userData') is None
    with client.session_transaction() as sess:
        assert 'authToken' not in sess
        assert 'user' not in sess


def test_login_with_lone_surrogate_password_is_rejected(client):
    r = client.post('/login', data='{"email": "contact@kayease.com", "password": "\\ud800"}',
                    content_type='application/json')
    assert r.status_code == 401
    assert r.get_json() == {'success': False, 'error': 'Invalid email or password'}


def test_dashboard_shows_refreshed_session(client, clock):
    login(client)
    clock.advance(minutes=26)

    r = client.get('/admin/dashboard')
    assert r.status_code == 200
    assert r.get_json()['user']['loginTime'] == format_timestamp(clock.now)
    assert cookie_session(client)['loginTime'] == format_timestamp(clock.now)
