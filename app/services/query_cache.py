"""
查询缓存
按 (实体类型, *参数) 元组缓存远程读取结果，写操作成功后按前缀失效。

- 同一个 key 同时最多只有一个进行中的请求，并发读取共享结果
- 写操作只在远端确认后才失效缓存，不做乐观更新
- 读取失败不自动重试，错误原样交给调用方
"""
import json
import logging
import threading
from concurrent.futures import Future

from cachelib import SimpleCache

logger = logging.getLogger(__name__)


def normalize_key(key):
    """把 'articles' / ['articles', 'published'] 统一为元组"""
    if isinstance(key, (list, tuple)):
        return tuple(key)
    return (key,)


def key_matches(key, prefix):
    """prefix 是否为 key 的前缀"""
    return key[:len(prefix)] == prefix


class QueryResult:
    """一次读取的状态快照"""
    __slots__ = ('data', 'is_loading', 'error')

    def __init__(self, data=None, is_loading=False, error=None):
        self.data = data
        self.is_loading = is_loading
        self.error = error

    @property
    def is_success(self):
        return not self.is_loading and self.error is None

    @property
    def error_message(self):
        if self.error is None:
            return None
        return getattr(self.error, 'message', None) or str(self.error)

    def __repr__(self):
        return f'<QueryResult loading={self.is_loading} error={self.error!r}>'


class MutationResult:
    """一次写操作的结果"""
    __slots__ = ('data', 'error')

    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error

    @property
    def ok(self):
        return self.error is None

    @property
    def error_message(self):
        if self.error is None:
            return None
        return getattr(self.error, 'message', None) or str(self.error)


class _Entry:
    def __init__(self):
        self.stale = False
        self.error = None
        self.in_flight = None
        self.fetch_fn = None
        self.generation = 0
        self.subscribers = {}


class QueryCache:
    """
    进程内查询缓存，数据存放在 cachelib 后端 (与 Flask-Caching 共用同一类后端)，
    元数据 (过期标记、进行中的请求、订阅者) 保存在本对象里。

    用法:
        result = queries.fetch(('articles', 'published'), load_published)
        queries.mutate(create_fn, invalidates=[('articles',)])
    """

    def __init__(self, backend=None, timeout=0, max_entries=1000):
        self._backend = backend if backend is not None else SimpleCache(default_timeout=0)
        self._timeout = timeout
        self._max_entries = max_entries
        self._entries = {}
        self._lock = threading.RLock()

    # ---- 存取 ----

    @staticmethod
    def _storage_key(key):
        return 'query:' + json.dumps(key, default=str)

    def _read(self, key):
        # 以单元素元组存放，区分 "缓存了 None" 与 "未命中"
        return self._backend.get(self._storage_key(key))

    def _write(self, key, data):
        self._backend.set(self._storage_key(key), (data,), timeout=self._timeout)

    def _entry(self, key):
        # 字典顺序即最近使用顺序
        entry = self._entries.pop(key, None)
        if entry is None:
            entry = _Entry()
        self._entries[key] = entry
        self._evict(keep=key)
        return entry

    def _evict(self, keep):
        """超出容量时从最久未使用的一端移除空闲条目 (无订阅者且无进行中的请求)"""
        excess = len(self._entries) - self._max_entries
        if excess <= 0:
            return
        idle = [
            k for k, e in self._entries.items()
            if k != keep and not e.subscribers and e.in_flight is None
        ][:excess]
        for k in idle:
            del self._entries[k]
            self._backend.delete(self._storage_key(k))
        if idle:
            logger.debug(f'查询缓存已满，移除 {len(idle)} 个空闲条目')

    # ---- 读取 ----

    def fetch(self, key, fetch_fn):
        """
        读取 key 对应的数据，缓存新鲜则直接返回，否则发起 (或加入) 远程请求

        :return: QueryResult，失败时 error 为异常对象，data 为旧数据 (如有)
        """
        key = normalize_key(key)
        with self._lock:
            entry = self._entry(key)
            entry.fetch_fn = fetch_fn
            cached = self._read(key)
            if cached is not None and not entry.stale:
                return QueryResult(data=cached[0])
            future = entry.in_flight
            owner = future is None
            if owner:
                future = entry.in_flight = Future()
                generation = entry.generation

        if owner:
            logger.debug(f'缓存未命中，请求远端: {key}')
            self._run(key, entry, fetch_fn, future, generation)

        try:
            data = future.result()
        except Exception as e:
            return QueryResult(data=cached[0] if cached is not None else None, error=e)
        return QueryResult(data=data)

    def _run(self, key, entry, fetch_fn, future, generation, require_subscribers=False):
        try:
            data = fetch_fn()
        except Exception as e:
            logger.warning(f'读取失败 {key}: {e}')
            with self._lock:
                if entry.in_flight is future:
                    entry.in_flight = None
                    entry.error = e
            future.set_exception(e)
            return

        callbacks = []
        with self._lock:
            if entry.in_flight is future:
                entry.in_flight = None
            # 请求发出后发生过失效，结果已过时，不写回
            superseded = generation != entry.generation
            # 发起请求的订阅者已全部离开，丢弃结果
            abandoned = require_subscribers and not entry.subscribers
            if not superseded and not abandoned:
                self._write(key, data)
                entry.stale = False
                entry.error = None
                callbacks = list(entry.subscribers.values())
        future.set_result(data)

        result = QueryResult(data=data)
        for callback in callbacks:
            callback(result)

    def peek(self, key):
        """查看当前状态但不触发请求"""
        key = normalize_key(key)
        with self._lock:
            entry = self._entries.get(key)
            cached = self._read(key)
            data = cached[0] if cached is not None else None
            if entry is None:
                return QueryResult(data=data)
            loading = entry.in_flight is not None and cached is None
            return QueryResult(data=data, is_loading=loading, error=entry.error)

    def is_stale(self, key):
        key = normalize_key(key)
        with self._lock:
            entry = self._entries.get(key)
            return entry is None or entry.stale or self._read(key) is None

    # ---- 订阅 ----

    def subscribe(self, key, fetch_fn, callback):
        """
        订阅 key，数据刷新时回调 callback(QueryResult)
        返回取消订阅函数
        """
        key = normalize_key(key)
        token = object()
        with self._lock:
            entry = self._entry(key)
            entry.fetch_fn = fetch_fn
            entry.subscribers[token] = callback
            needs_fetch = (entry.stale or self._read(key) is None) and entry.in_flight is None

        if needs_fetch:
            self._refresh(key, require_subscribers=True)

        def unsubscribe():
            with self._lock:
                entry.subscribers.pop(token, None)

        return unsubscribe

    def subscriber_count(self, key):
        with self._lock:
            entry = self._entries.get(normalize_key(key))
            return len(entry.subscribers) if entry else 0

    def _refresh(self, key, require_subscribers=False):
        with self._lock:
            entry = self._entry(key)
            if entry.in_flight is not None or entry.fetch_fn is None:
                return
            future = entry.in_flight = Future()
            generation = entry.generation
            fetch_fn = entry.fetch_fn
        self._run(key, entry, fetch_fn, future, generation, require_subscribers=require_subscribers)

    # ---- 失效与写入 ----

    def invalidate(self, *prefixes):
        """
        将所有以 prefixes 任一为前缀的 key 标记为过期
        有订阅者的 key 立即重新请求，其余在下一次 fetch 时刷新
        """
        prefixes = [normalize_key(p) for p in prefixes]
        with self._lock:
            matched = [k for k in self._entries if any(key_matches(k, p) for p in prefixes)]
            refetch = []
            for k in matched:
                entry = self._entries[k]
                entry.stale = True
                entry.generation += 1
                # 进行中的旧请求不再被复用
                entry.in_flight = None
                if entry.subscribers and entry.fetch_fn is not None:
                    refetch.append(k)

        if matched:
            logger.info(f'缓存失效 {len(matched)} 项: {prefixes}')
        for k in refetch:
            self._refresh(k, require_subscribers=True)
        return matched

    def mutate(self, mutation_fn, on_success=None, on_error=None, invalidates=()):
        """
        执行写操作；远端确认后再失效 invalidates 中的前缀

        :return: MutationResult，失败时缓存保持不变
        """
        try:
            data = mutation_fn()
        except Exception as e:
            logger.warning(f'写操作失败: {e}')
            if on_error is not None:
                on_error(e)
            return MutationResult(error=e)

        if invalidates:
            self.invalidate(*invalidates)
        if on_success is not None:
            on_success(data)
        return MutationResult(data=data)

    def clear(self):
        # 后端可能与 Flask-Caching 共用，只删除本缓存写入的 key
        with self._lock:
            for key in self._entries:
                self._backend.delete(self._storage_key(key))
            self._entries.clear()
