"""
数据访问层基类
每个实体一个 Accessor：读操作走 QueryCache.fetch，写操作走 QueryCache.mutate 并声明要失效的 key 前缀
"""
from datetime import datetime, timezone


def utcnow_iso():
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat()


def clean_record(data, fields, required=()):
    """
    只保留 fields 中的字段，可选字段的空字符串转为 None
    """
    record = {}
    for name in fields:
        if name not in data:
            continue
        value = data[name]
        if isinstance(value, str):
            value = value.strip()
            if value == '' and name not in required:
                value = None
        record[name] = value
    return record


class BaseAccessor:
    table = None

    def __init__(self, queries, store):
        self.queries = queries
        self.store = store

    def fetch(self, key, fetch_fn):
        return self.queries.fetch(key, fetch_fn)

    def mutate(self, mutation_fn, invalidates, on_success=None, on_error=None):
        return self.queries.mutate(
            mutation_fn,
            on_success=on_success,
            on_error=on_error,
            invalidates=invalidates,
        )
