"""
CMS 后端扩展
按配置组装 存储 / 对象存储 / 认证 / 查询缓存 与各实体访问器，挂在 app.extensions['cms'] 上。
视图通过 app.extensions 中的 backend 代理访问，测试可直接替换其中任意一项。
"""
import logging

from flask import current_app

from app.services.article_service import ArticleService
from app.services.auth_provider import SqlAuthProvider, SupabaseAuthProvider
from app.services.category_service import CategoryService
from app.services.hero_service import HeroService
from app.services.media_service import MediaService
from app.services.page_service import PageService
from app.services.query_cache import QueryCache
from app.services.section_service import PageSectionService, SiteSectionService, SectionCardService
from app.services.settings_service import SettingsService
from app.services.sql_store import SqlStore
from app.services.supabase_store import SupabaseStore
from app.utils.cloud_storage import create_storage
from app.utils.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class BackendState:
    """单个 app 的后端组件"""

    def __init__(self, store, storage, auth, queries):
        self.store = store
        self.storage = storage
        self.auth = auth
        self.queries = queries
        self.articles = ArticleService(queries, store)
        self.pages = PageService(queries, store)
        self.categories = CategoryService(queries, store)
        self.media = MediaService(queries, store, storage)
        self.hero = HeroService(queries, store)
        self.page_sections = PageSectionService(queries, store)
        self.site_sections = SiteSectionService(queries, store)
        self.section_cards = SectionCardService(queries, store)
        self.settings = SettingsService(queries, store)


class Backend:

    def __init__(self, app=None, cache=None):
        if app is not None:
            self.init_app(app, cache)

    def init_app(self, app, cache=None, transport=None):
        config = app.config
        client = None
        if 'supabase' in (config['STORE_BACKEND'], config['AUTH_BACKEND'], config['STORAGE_BACKEND']):
            client = SupabaseClient.from_config(config, transport=transport)

        if config['STORE_BACKEND'] == 'supabase':
            store = SupabaseStore(client)
        else:
            store = SqlStore()

        if config['AUTH_BACKEND'] == 'supabase':
            auth = SupabaseAuthProvider(client, store)
        else:
            auth = SqlAuthProvider()

        storage = create_storage(config, client=client)

        # 与 Flask-Caching 共用同一个 cachelib 后端
        cache_backend = app.extensions['cache'][cache] if cache is not None else None
        queries = QueryCache(
            cache_backend,
            timeout=config.get('QUERY_CACHE_TIMEOUT', 0),
            max_entries=config.get('QUERY_CACHE_MAX_ENTRIES', 1000),
        )

        app.extensions['cms'] = BackendState(store, storage, auth, queries)
        logger.info(
            f"CMS 后端: store={config['STORE_BACKEND']} auth={config['AUTH_BACKEND']} "
            f"storage={config['STORAGE_BACKEND']}"
        )

    @property
    def state(self):
        return current_app.extensions['cms']

    def __getattr__(self, name):
        # backend.articles / backend.queries ... 代理到当前 app 的组件
        if name.startswith('_'):
            raise AttributeError(name)
        return getattr(current_app.extensions['cms'], name)


backend = Backend()
