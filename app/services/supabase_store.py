"""
Supabase PostgREST 存储后端
/rest/v1/<table>?col=eq.value&order=col.desc&limit=n

行级安全策略按调用者身份判断权限，已登录时请求携带用户的访问令牌，
未登录时使用匿名 key。
"""
from flask import has_request_context, session

from app.exceptions import StoreError
from app.extensions import SESSION_KEY
from app.services.remote_store import RemoteStore
from app.utils.supabase_client import SupabaseRequestError


def _literal(value):
    """Python 值 -> PostgREST 过滤字面量"""
    if value is True:
        return 'true'
    if value is False:
        return 'false'
    return str(value)


def _quote(value):
    text = _literal(value)
    if any(ch in text for ch in ',()"'):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def session_access_token():
    """当前请求中已登录用户的访问令牌"""
    if not has_request_context():
        return None
    return (session.get(SESSION_KEY) or {}).get('access_token')


class SupabaseStore(RemoteStore):

    def __init__(self, client, token_getter=session_access_token):
        self.client = client
        self.token_getter = token_getter

    def _request(self, method, table, access_token=None, **kwargs):
        if access_token is None:
            access_token = self.token_getter()
        try:
            return self.client.request(method, f'/rest/v1/{table}', access_token=access_token, **kwargs)
        except SupabaseRequestError as e:
            code = e.status_code if e.status_code in (400, 404, 409) else 502
            raise StoreError(e.message, code=code)

    def build_params(self, query):
        params = [('select', '*')]
        for op, name, value in query.filters:
            if op == 'eq':
                params.append((name, 'is.null' if value is None else f'eq.{_literal(value)}'))
            elif op == 'neq':
                params.append((name, f'neq.{_literal(value)}'))
            elif op == 'ilike':
                params.append((name, f'ilike.{value}'))
            elif op == 'in':
                params.append((name, 'in.(' + ','.join(_quote(v) for v in value) + ')'))
        if query.orders:
            params.append(('order', ','.join(
                f'{name}.{"desc" if desc else "asc"}' for name, desc in query.orders
            )))
        if query.limit_count is not None:
            params.append(('limit', str(query.limit_count)))
        return params

    def execute(self, query):
        response = self._request(
            'GET', query.table, access_token=query.access_token, params=self.build_params(query),
        )
        return response.json()

    def insert(self, table, values):
        self._check_table(table)
        response = self._request(
            'POST', table, json=[values],
            headers={'Prefer': 'return=representation'},
        )
        rows = response.json()
        return rows[0] if rows else None

    def update(self, table, record_id, values):
        self._check_table(table)
        response = self._request(
            'PATCH', table, params=[('id', f'eq.{record_id}')], json=values,
            headers={'Prefer': 'return=representation'},
        )
        rows = response.json()
        return rows[0] if rows else None

    def delete(self, table, record_id):
        self._check_table(table)
        self._request('DELETE', table, params=[('id', f'eq.{record_id}')])
