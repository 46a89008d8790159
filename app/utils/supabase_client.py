"""
Supabase HTTP 客户端
REST (PostgREST)、Storage、Auth (GoTrue) 三个后端共用，使用 httpx 直接调用 API
"""
import httpx


class SupabaseRequestError(Exception):
    """请求失败；status_code 为 None 表示网络层错误"""
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_network_error(self):
        return self.status_code is None


class SupabaseClient:

    def __init__(self, url, key, timeout=15.0, transport=None):
        if not url or not key:
            raise ValueError('SUPABASE_URL 和 SUPABASE_KEY 必须配置')
        self.url = url.rstrip('/')
        self.key = key
        self.http = httpx.Client(
            base_url=self.url,
            headers={'apikey': key, 'Authorization': f'Bearer {key}'},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config, transport=None):
        return cls(
            config.get('SUPABASE_URL'),
            config.get('SUPABASE_KEY'),
            timeout=config.get('SUPABASE_TIMEOUT', 15.0),
            transport=transport,
        )

    def request(self, method, path, access_token=None, **kwargs):
        """
        发送请求，非 2xx 响应与网络错误统一抛出 SupabaseRequestError
        access_token: 以用户身份调用时替换 Authorization 头
        """
        headers = dict(kwargs.pop('headers', None) or {})
        if access_token:
            headers['Authorization'] = f'Bearer {access_token}'
        try:
            response = self.http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise SupabaseRequestError(f'Network error: {e}')
        if response.status_code >= 400:
            raise SupabaseRequestError(self._error_message(response), response.status_code)
        return response

    @staticmethod
    def _error_message(response):
        try:
            body = response.json()
        except ValueError:
            return response.text or f'HTTP {response.status_code}'
        if isinstance(body, dict):
            for field in ('message', 'msg', 'error_description', 'error'):
                if body.get(field):
                    return str(body[field])
        return f'HTTP {response.status_code}'

    def close(self):
        self.http.close()
