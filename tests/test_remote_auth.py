import json

import httpx
import pytest

from app.exceptions import AuthError, AuthUnavailable
from app.services.auth_provider import SupabaseAuthProvider
from app.services.supabase_store import SupabaseStore
from app.utils.supabase_client import SupabaseClient


def session_payload(user_id='u1', access='access-1', refresh='refresh-1'):
    return {
        'access_token': access,
        'refresh_token': refresh,
        'user': {'id': user_id, 'email': 'ada@perspective.io', 'user_metadata': {'full_name': 'Ada'}},
    }


class FakeGoTrue:
    """按路径分发的 Supabase Auth + user_roles 模拟"""

    def __init__(self, routes, admin_ids=('u1',)):
        self.routes = routes
        self.admin_ids = admin_ids
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if path == '/rest/v1/user_roles':
            user_id = request.url.params['user_id'].removeprefix('eq.')
            rows = [{'user_id': user_id, 'role': 'admin'}] if user_id in self.admin_ids else []
            return httpx.Response(200, json=rows)
        key = (request.method, path, request.url.params.get('grant_type'))
        response = self.routes[key]
        if isinstance(response, Exception):
            raise response
        return response


def provider(handler):
    client = SupabaseClient('https://proj.supabase.co', 'anon-key', transport=httpx.MockTransport(handler))
    return SupabaseAuthProvider(client, SupabaseStore(client))


def test_sign_in_reads_admin_role():
    handler = FakeGoTrue({
        ('POST', '/auth/v1/token', 'password'): httpx.Response(200, json=session_payload()),
    })
    user = provider(handler).sign_in('ada@perspective.io', 'secret')

    assert user.id == 'u1'
    assert user.is_admin
    assert user.display_name == 'Ada'
    assert user.access_token == 'access-1'
    assert json.loads(handler.requests[0].content) == {'email': 'ada@perspective.io', 'password': 'secret'}


def test_sign_in_without_role_is_not_admin():
    handler = FakeGoTrue({
        ('POST', '/auth/v1/token', 'password'): httpx.Response(200, json=session_payload()),
    }, admin_ids=())
    assert not provider(handler).sign_in('ada@perspective.io', 'secret').is_admin


def test_bad_credentials_are_an_auth_error():
    handler = FakeGoTrue({
        ('POST', '/auth/v1/token', 'password'): httpx.Response(
            400, json={'error': 'invalid_grant', 'error_description': 'Invalid login credentials'}),
    })
    with pytest.raises(AuthError, match='Invalid login credentials'):
        provider(handler).sign_in('ada@perspective.io', 'wrong')


@pytest.mark.parametrize('response', [
    httpx.Response(503, text='maintenance'),
    httpx.ConnectTimeout('timed out'),
])
def test_unreachable_service_is_unavailable(response):
    handler = FakeGoTrue({('POST', '/auth/v1/token', 'password'): response})
    with pytest.raises(AuthUnavailable):
        provider(handler).sign_in('ada@perspective.io', 'secret')


def test_get_user_with_valid_token():
    handler = FakeGoTrue({
        ('GET', '/auth/v1/user', None): httpx.Response(200, json=session_payload()['user']),
    })
    user = provider(handler).get_user('u1', {'access_token': 'access-1', 'refresh_token': 'refresh-1'})

    assert user.id == 'u1'
    assert handler.requests[0].headers['Authorization'] == 'Bearer access-1'


def test_get_user_refreshes_expired_token():
    handler = FakeGoTrue({
        ('GET', '/auth/v1/user', None): httpx.Response(401, json={'msg': 'JWT expired'}),
        ('POST', '/auth/v1/token', 'refresh_token'): httpx.Response(
            200, json=session_payload(access='access-2', refresh='refresh-2')),
    })
    user = provider(handler).get_user('u1', {'access_token': 'access-1', 'refresh_token': 'refresh-1'})

    assert user.access_token == 'access-2'
    assert user.to_session()['refresh_token'] == 'refresh-2'


def test_role_lookup_uses_the_users_own_token():
    handler = FakeGoTrue({
        ('POST', '/auth/v1/token', 'password'): httpx.Response(200, json=session_payload()),
    })
    provider(handler).sign_in('ada@perspective.io', 'secret')

    roles = [r for r in handler.requests if r.url.path == '/rest/v1/user_roles']
    assert len(roles) == 1
    assert roles[0].headers['Authorization'] == 'Bearer access-1'


def test_role_lookup_after_refresh_uses_the_new_token():
    handler = FakeGoTrue({
        ('GET', '/auth/v1/user', None): httpx.Response(401, json={'msg': 'JWT expired'}),
        ('POST', '/auth/v1/token', 'refresh_token'): httpx.Response(
            200, json=session_payload(access='access-2', refresh='refresh-2')),
    })
    provider(handler).get_user('u1', {'access_token': 'access-1', 'refresh_token': 'refresh-1'})

    roles = [r for r in handler.requests if r.url.path == '/rest/v1/user_roles']
    assert roles[-1].headers['Authorization'] == 'Bearer access-2'


def test_get_user_returns_none_when_refresh_rejected():
    handler = FakeGoTrue({
        ('GET', '/auth/v1/user', None): httpx.Response(401, json={'msg': 'JWT expired'}),
        ('POST', '/auth/v1/token', 'refresh_token'): httpx.Response(400, json={'msg': 'Invalid Refresh Token'}),
    })
    assert provider(handler).get_user('u1', {'access_token': 'a', 'refresh_token': 'r'}) is None


def test_get_user_without_session_is_anonymous():
    handler = FakeGoTrue({})
    assert provider(handler).get_user('u1', {}) is None
    assert handler.requests == []


def test_get_user_propagates_outage():
    handler = FakeGoTrue({('GET', '/auth/v1/user', None): httpx.ConnectError('down')})
    with pytest.raises(AuthUnavailable):
        provider(handler).get_user('u1', {'access_token': 'a'})


def test_role_lookup_failure_is_unavailable():
    def handler(request):
        if request.url.path == '/rest/v1/user_roles':
            return httpx.Response(500, text='boom')
        return httpx.Response(200, json=session_payload())

    with pytest.raises(AuthUnavailable, match='Role lookup failed'):
        provider(handler).sign_in('ada@perspective.io', 'secret')
