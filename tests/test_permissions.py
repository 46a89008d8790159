from urllib.parse import parse_qs, urlsplit

import pytest

from app.exceptions import AuthUnavailable
from app.services.query_cache import QueryResult
from app.utils.permissions import AuthState, GateDecision, decide
from tests.conftest import ADMIN_EMAIL, create_user, login


@pytest.mark.parametrize('state, admin, require_admin, expected', [
    (AuthState.UNKNOWN, False, True, GateDecision.LOADING),
    (AuthState.UNKNOWN, True, True, GateDecision.LOADING),
    (AuthState.ANONYMOUS, False, True, GateDecision.REDIRECT_LOGIN),
    (AuthState.ANONYMOUS, False, False, GateDecision.REDIRECT_LOGIN),
    (AuthState.AUTHENTICATED, False, True, GateDecision.DENIED),
    (AuthState.AUTHENTICATED, False, False, GateDecision.ALLOW),
    (AuthState.AUTHENTICATED, True, True, GateDecision.ALLOW),
])
def test_decide(state, admin, require_admin, expected):
    assert decide(state, admin, require_admin) is expected


def test_anonymous_is_redirected_to_login_with_next(client):
    response = client.get('/admin/articles?q=travel')
    assert response.status_code == 302
    assert '/admin/login' in response.headers['Location']
    location = urlsplit(response.headers['Location'])
    assert parse_qs(location.query)['next'] == ['/admin/articles?q=travel']


def test_login_returns_to_requested_page(app, client):
    create_user(app, ADMIN_EMAIL, admin=True)
    response = login(client, ADMIN_EMAIL, next_url='/admin/pages')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/admin/pages')


def test_login_ignores_external_next(app, client):
    create_user(app, ADMIN_EMAIL, admin=True)
    response = login(client, ADMIN_EMAIL, next_url='https://evil.example/steal')
    assert response.headers['Location'].endswith('/admin/')


def test_non_admin_is_denied_before_any_fetch(app, user_client, state, monkeypatch):
    calls = []

    def spy(*args, **kwargs):
        calls.append(args)
        return QueryResult(data=[])

    monkeypatch.setattr(state.articles, 'list', spy)

    response = user_client.get('/admin/')
    assert response.status_code == 403
    assert b'Access Denied' in response.data
    assert calls == []


def test_non_admin_login_lands_on_public_site(app, client):
    create_user(app, 'reader@perspective.io')
    response = login(client, 'reader@perspective.io')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/')


def test_unknown_session_shows_pending_page(app, admin_client, state, monkeypatch):
    def unavailable(user_id, session_data):
        raise AuthUnavailable('connect timeout')

    monkeypatch.setattr(state.auth, 'get_user', unavailable)

    response = admin_client.get('/admin/')
    assert response.status_code == 503
    assert b'Checking your session' in response.data
    assert 'Location' not in response.headers


def test_admin_sees_dashboard(admin_client, make_article):
    make_article()
    response = admin_client.get('/admin/')
    assert response.status_code == 200
    assert b'Dashboard' in response.data
    assert b'Slow Mornings' in response.data


def test_logout_clears_session(admin_client):
    response = admin_client.get('/admin/logout')
    assert response.status_code == 302

    response = admin_client.get('/admin/')
    assert response.status_code == 302
    assert '/admin/login' in response.headers['Location']
