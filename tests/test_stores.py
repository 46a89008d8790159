import json

import httpx
import pytest
from flask import session

from app.exceptions import StoreError
from app.extensions import SESSION_KEY
from app.services.sql_store import SqlStore
from app.services.supabase_store import SupabaseStore
from app.utils.supabase_client import SupabaseClient


@pytest.fixture
def store(app):
    with app.app_context():
        yield SqlStore()


def _article(**overrides):
    data = {'title': 'Slow Mornings', 'slug': 'slow-mornings', 'category': 'wellness', 'status': 'published'}
    data.update(overrides)
    return data


class TestSqlStore:

    def test_insert_returns_full_record(self, store):
        row = store.insert('articles', _article())
        assert row['id']
        assert row['created_at']
        assert row['slug'] == 'slow-mornings'

    def test_filters_order_and_limit(self, store):
        store.insert('articles', _article(title='A', slug='a', category='Wellness'))
        store.insert('articles', _article(title='B', slug='b', status='draft'))
        store.insert('articles', _article(title='C', slug='c', category='travel'))

        published = store.query('articles').eq('status', 'published').order('title', desc=True).all()
        assert [r['title'] for r in published] == ['C', 'A']

        wellness = store.query('articles').ilike('category', 'wellness').all()
        assert {r['slug'] for r in wellness} == {'a', 'b'}

        others = store.query('articles').neq('slug', 'a').order('slug').limit(1).all()
        assert [r['slug'] for r in others] == ['b']

        picked = store.query('articles').in_('slug', ['a', 'c']).all()
        assert {r['slug'] for r in picked} == {'a', 'c'}

    def test_maybe_single(self, store):
        store.insert('articles', _article(slug='a'))
        store.insert('articles', _article(slug='b'))

        assert store.query('articles').eq('slug', 'a').maybe_single()['slug'] == 'a'
        assert store.query('articles').eq('slug', 'missing').maybe_single() is None
        with pytest.raises(StoreError, match='multiple rows'):
            store.query('articles').eq('status', 'published').maybe_single()

    def test_update_and_delete(self, store):
        row = store.insert('articles', _article())
        updated = store.update('articles', row['id'], {
            'title': 'Slower Mornings',
            'published_at': '2024-03-01T08:00:00Z',
        })
        assert updated['title'] == 'Slower Mornings'
        assert updated['published_at'].startswith('2024-03-01T08:00:00')

        assert store.update('articles', 'missing-id', {'title': 'x'}) is None

        store.delete('articles', row['id'])
        assert store.query('articles').all() == []
        # 删除不存在的 id 不报错
        store.delete('articles', row['id'])

    def test_duplicate_slug_is_a_conflict(self, store):
        store.insert('articles', _article())
        with pytest.raises(StoreError) as exc:
            store.insert('articles', _article(title='Another'))
        assert exc.value.code == 409
        assert 'duplicate key' in exc.value.message
        # 会话已回滚，后续写入正常
        assert store.insert('articles', _article(slug='other'))['slug'] == 'other'

    def test_unknown_column_and_table(self, store):
        with pytest.raises(StoreError) as exc:
            store.query('articles').eq('colour', 'red').all()
        assert exc.value.code == 400

        with pytest.raises(StoreError) as exc:
            store.query('orders')
        assert exc.value.code == 404

    def test_json_columns_round_trip(self, store):
        row = store.insert('site_settings', {'key': 'seo', 'value': {'site_title': 'Perspective'}})
        assert store.query('site_settings').eq('key', 'seo').maybe_single()['value'] == row['value']


class Recorder:
    """httpx.MockTransport 处理函数：记录请求并返回预设响应"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def supabase_store(recorder):
    client = SupabaseClient('https://proj.supabase.co', 'anon-key', transport=httpx.MockTransport(recorder))
    return SupabaseStore(client)


class TestSupabaseStore:

    def test_query_parameters(self):
        recorder = Recorder(httpx.Response(200, json=[{'id': '1'}]))
        store = supabase_store(recorder)

        rows = store.query('articles').eq('status', 'published').ilike('category', 'travel') \
            .in_('slug', ['a', 'b,c']).order('created_at', desc=True).limit(3).all()

        assert rows == [{'id': '1'}]
        request = recorder.requests[0]
        assert request.method == 'GET'
        assert request.url.path == '/rest/v1/articles'
        params = request.url.params
        assert params['select'] == '*'
        assert params['status'] == 'eq.published'
        assert params['category'] == 'ilike.travel'
        assert params['slug'] == 'in.(a,"b,c")'
        assert params['order'] == 'created_at.desc'
        assert params['limit'] == '3'
        assert request.headers['apikey'] == 'anon-key'

    def test_boolean_and_null_filters(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        store = supabase_store(recorder)

        store.query('hero_content').eq('is_active', True).eq('button_link', None).all()

        params = recorder.requests[0].url.params
        assert params['is_active'] == 'eq.true'
        assert params['button_link'] == 'is.null'

    def test_insert_asks_for_representation(self):
        recorder = Recorder(httpx.Response(201, json=[{'id': 'new', 'name': 'Travel'}]))
        store = supabase_store(recorder)

        row = store.insert('categories', {'name': 'Travel', 'slug': 'travel'})

        assert row == {'id': 'new', 'name': 'Travel'}
        request = recorder.requests[0]
        assert request.method == 'POST'
        assert request.headers['Prefer'] == 'return=representation'
        assert json.loads(request.content) == [{'name': 'Travel', 'slug': 'travel'}]

    def test_update_filters_by_id(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        store = supabase_store(recorder)

        assert store.update('pages', 'p1', {'title': 'About'}) is None
        request = recorder.requests[0]
        assert request.method == 'PATCH'
        assert request.url.params['id'] == 'eq.p1'

    def test_delete_filters_by_id(self):
        recorder = Recorder(httpx.Response(204))
        store = supabase_store(recorder)

        store.delete('media', 'm1')
        assert recorder.requests[0].method == 'DELETE'
        assert recorder.requests[0].url.params['id'] == 'eq.m1'

    def test_unique_violation_keeps_remote_message(self):
        recorder = Recorder(httpx.Response(409, json={
            'code': '23505',
            'message': 'duplicate key value violates unique constraint "articles_slug_key"',
        }))
        store = supabase_store(recorder)

        with pytest.raises(StoreError) as exc:
            store.insert('articles', _article())
        assert exc.value.code == 409
        assert exc.value.message == 'duplicate key value violates unique constraint "articles_slug_key"'

    def test_server_and_network_errors(self):
        store = supabase_store(Recorder(httpx.Response(500, text='upstream exploded')))
        with pytest.raises(StoreError) as exc:
            store.query('articles').all()
        assert exc.value.code == 502
        assert exc.value.message == 'upstream exploded'

        store = supabase_store(Recorder(httpx.ConnectError('connection refused')))
        with pytest.raises(StoreError) as exc:
            store.query('articles').all()
        assert exc.value.code == 502
        assert 'Network error' in exc.value.message

    def test_unknown_table_is_rejected_locally(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        store = supabase_store(recorder)
        with pytest.raises(StoreError):
            store.insert('orders', {})
        assert recorder.requests == []


class TestSupabaseUserToken:

    @pytest.mark.parametrize('write', [
        lambda store: store.insert('articles', {'title': 'Night Trains'}),
        lambda store: store.update('articles', 'a1', {'title': 'Night Trains'}),
        lambda store: store.delete('articles', 'a1'),
    ], ids=['insert', 'update', 'delete'])
    def test_writes_carry_signed_in_users_token(self, app, write):
        recorder = Recorder(httpx.Response(200, json=[{'id': 'a1'}]))
        store = supabase_store(recorder)

        with app.test_request_context():
            session[SESSION_KEY] = {'access_token': 'user-token'}
            write(store)

        request = recorder.requests[0]
        assert request.headers['Authorization'] == 'Bearer user-token'
        assert request.headers['apikey'] == 'anon-key'

    def test_anonymous_requests_use_the_anon_key(self, app):
        recorder = Recorder(httpx.Response(200, json=[]))
        store = supabase_store(recorder)

        with app.test_request_context():
            store.query('articles').all()
        store.query('articles').all()

        assert [r.headers['Authorization'] for r in recorder.requests] == ['Bearer anon-key'] * 2

    def test_explicit_token_wins_over_session(self, app):
        recorder = Recorder(httpx.Response(200, json=[]))
        store = supabase_store(recorder)

        with app.test_request_context():
            session[SESSION_KEY] = {'access_token': 'stale-token'}
            store.query('user_roles', access_token='fresh-token').eq('user_id', 'u1').all()

        assert recorder.requests[0].headers['Authorization'] == 'Bearer fresh-token'

    def test_custom_token_getter(self):
        recorder = Recorder(httpx.Response(201, json=[{'id': 'c1'}]))
        client = SupabaseClient('https://proj.supabase.co', 'anon-key', transport=httpx.MockTransport(recorder))
        store = SupabaseStore(client, token_getter=lambda: 'worker-token')

        store.insert('categories', {'name': 'Travel'})
        assert recorder.requests[0].headers['Authorization'] == 'Bearer worker-token'
