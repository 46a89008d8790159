from app.exceptions import NotFound
from app.services.base import BaseAccessor, clean_record, utcnow_iso
from app.services.query_cache import QueryResult

ARTICLE_STATUSES = ('draft', 'published', 'archived')

ARTICLE_FIELDS = (
    'title', 'slug', 'excerpt', 'content', 'featured_image', 'category',
    'author_id', 'author_name', 'status', 'read_time',
    'meta_title', 'meta_description', 'og_image',
)
REQUIRED_FIELDS = ('title', 'slug', 'category', 'status')


def filter_articles(articles, term):
    """按标题或分类做子串搜索 (不区分大小写)"""
    term = (term or '').strip().lower()
    if not term:
        return list(articles)
    return [
        a for a in articles
        if term in (a.get('title') or '').lower() or term in (a.get('category') or '').lower()
    ]


class ArticleService(BaseAccessor):
    """
    文章访问器

    缓存 key:
        ('articles', status)                      列表
        ('articles', 'related', category, slug)   相关文章
        ('articles', 'category', slug, limit)     分类文章
        ('article', id) / ('article', 'slug', slug)
    任何写操作都会失效 'articles' 与 'article' 两个前缀。
    """
    table = 'articles'
    INVALIDATES = [('articles',), ('article',)]

    def list(self, status=None):
        def load():
            query = self.store.query(self.table).order('created_at', desc=True)
            if status:
                query = query.eq('status', status)
            return query.all()
        return self.fetch(('articles', status), load)

    def get(self, article_id):
        return self.fetch(
            ('article', article_id),
            lambda: self.store.query(self.table).eq('id', article_id).maybe_single(),
        )

    def get_published_by_slug(self, slug):
        return self.fetch(
            ('article', 'slug', slug),
            lambda: self.store.query(self.table)
                .eq('slug', slug).eq('status', 'published').maybe_single(),
        )

    def related(self, category, exclude_slug, limit=3):
        return self.fetch(
            ('articles', 'related', category, exclude_slug),
            lambda: self.store.query(self.table)
                .eq('status', 'published').eq('category', category)
                .neq('slug', exclude_slug).limit(limit).all(),
        )

    def by_category(self, category_slug, limit=None):
        """已发布文章，category 与分类 slug 按忽略大小写的字符串匹配"""
        def load():
            query = self.store.query(self.table).eq('status', 'published') \
                .ilike('category', category_slug).order('created_at', desc=True)
            if limit:
                query = query.limit(limit)
            return query.all()
        return self.fetch(('articles', 'category', category_slug, limit), load)

    def search(self, term):
        """后台列表搜索，在缓存的全部文章上过滤"""
        result = self.list()
        if result.error is not None:
            return result
        return QueryResult(data=filter_articles(result.data or [], term))

    def create(self, data, **callbacks):
        record = clean_record(data, ARTICLE_FIELDS, REQUIRED_FIELDS)
        record.setdefault('status', 'draft')
        # 发布时间只在进入 published 状态时记录
        record['published_at'] = utcnow_iso() if record['status'] == 'published' else None
        return self.mutate(
            lambda: self.store.insert(self.table, record),
            self.INVALIDATES, **callbacks
        )

    def update(self, article_id, data, **callbacks):
        record = clean_record(data, ARTICLE_FIELDS, REQUIRED_FIELDS)

        def run():
            current = self.store.query(self.table).eq('id', article_id).maybe_single()
            if current is None:
                raise NotFound('Article not found')
            status = record.get('status', current['status'])
            if status == 'published':
                if current['status'] != 'published' or not current.get('published_at'):
                    record['published_at'] = utcnow_iso()
            else:
                record['published_at'] = None
            return self.store.update(self.table, article_id, record)

        return self.mutate(run, self.INVALIDATES, **callbacks)

    def delete(self, article_id, **callbacks):
        return self.mutate(
            lambda: self.store.delete(self.table, article_id),
            self.INVALIDATES, **callbacks
        )
