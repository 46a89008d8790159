"""
远程数据存储接口
所有持久化都经由这里：按表名查询 (过滤/排序/限制)、插入、按 id 更新、按 id 删除。
唯一性与权限由后端负责，这里只做转发。

两种实现:
- SqlStore       本地 Flask-SQLAlchemy (开发/测试)
- SupabaseStore  Supabase PostgREST (生产)
"""
from app.exceptions import StoreError


class Query:
    """
    链式查询构造器

    用法:
        store.query('articles').eq('status', 'published').order('created_at', desc=True).limit(10).all()
    """

    def __init__(self, store, table, access_token=None):
        self.store = store
        self.table = table
        # 以指定用户身份读取，None 表示由后端决定
        self.access_token = access_token
        self.filters = []
        self.orders = []
        self.limit_count = None

    def eq(self, column, value):
        self.filters.append(('eq', column, value))
        return self

    def neq(self, column, value):
        self.filters.append(('neq', column, value))
        return self

    def ilike(self, column, pattern):
        """大小写不敏感匹配，pattern 不带通配符时等价于忽略大小写的相等"""
        self.filters.append(('ilike', column, pattern))
        return self

    def in_(self, column, values):
        self.filters.append(('in', column, list(values)))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def all(self):
        return self.store.execute(self)

    def maybe_single(self):
        """返回唯一一行或 None，多于一行视为错误"""
        rows = self.store.execute(self)
        if len(rows) > 1:
            raise StoreError(f'JSON object requested, multiple rows returned from {self.table}')
        return rows[0] if rows else None

    def __repr__(self):
        return f'<Query {self.table} filters={self.filters} order={self.orders} limit={self.limit_count}>'


class RemoteStore:
    """存储后端基类"""

    TABLES = (
        'articles', 'pages', 'categories', 'media', 'hero_content',
        'page_sections', 'site_sections', 'site_settings', 'user_roles',
    )

    def query(self, table, access_token=None):
        self._check_table(table)
        return Query(self, table, access_token)

    def _check_table(self, table):
        if table not in self.TABLES:
            raise StoreError(f'relation "{table}" does not exist', code=404)

    def execute(self, query):
        raise NotImplementedError

    def insert(self, table, values):
        """插入一行并返回完整记录"""
        raise NotImplementedError

    def update(self, table, record_id, values):
        """按 id 更新，返回更新后的记录；id 不存在时返回 None"""
        raise NotImplementedError

    def delete(self, table, record_id):
        raise NotImplementedError
