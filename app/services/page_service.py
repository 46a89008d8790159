from app.exceptions import NotFound
from app.services.base import BaseAccessor, clean_record

PAGE_FIELDS = ('title', 'slug', 'content', 'is_published', 'meta_title', 'meta_description', 'og_image')
REQUIRED_FIELDS = ('title', 'slug')


class PageService(BaseAccessor):
    """独立页面访问器，缓存前缀 'pages' / 'page'"""
    table = 'pages'
    INVALIDATES = [('pages',), ('page',)]

    def list(self):
        return self.fetch(('pages',), lambda: self.store.query(self.table).order('title').all())

    def get(self, page_id):
        return self.fetch(
            ('page', page_id),
            lambda: self.store.query(self.table).eq('id', page_id).maybe_single(),
        )

    def get_published_by_slug(self, slug):
        return self.fetch(
            ('page', 'slug', slug),
            lambda: self.store.query(self.table)
                .eq('slug', slug).eq('is_published', True).maybe_single(),
        )

    def create(self, data, **callbacks):
        record = clean_record(data, PAGE_FIELDS, REQUIRED_FIELDS)
        record['is_published'] = bool(record.get('is_published'))
        return self.mutate(lambda: self.store.insert(self.table, record), self.INVALIDATES, **callbacks)

    def update(self, page_id, data, **callbacks):
        record = clean_record(data, PAGE_FIELDS, REQUIRED_FIELDS)
        if 'is_published' in record:
            record['is_published'] = bool(record['is_published'])

        def run():
            row = self.store.update(self.table, page_id, record)
            if row is None:
                raise NotFound('Page not found')
            return row

        return self.mutate(run, self.INVALIDATES, **callbacks)

    def delete(self, page_id, **callbacks):
        return self.mutate(lambda: self.store.delete(self.table, page_id), self.INVALIDATES, **callbacks)
