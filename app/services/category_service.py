from app.exceptions import NotFound
from app.services.base import BaseAccessor, clean_record

CATEGORY_FIELDS = ('name', 'slug', 'description')


class CategoryService(BaseAccessor):
    """
    分类访问器，缓存前缀 'categories'
    Article.category 以字符串引用分类 slug，删除分类不会级联修改文章
    """
    table = 'categories'
    INVALIDATES = [('categories',)]

    def list(self):
        return self.fetch(('categories',), lambda: self.store.query(self.table).order('name').all())

    def get_by_slug(self, slug):
        """在已缓存的分类列表中按 slug 忽略大小写查找，返回 (category, QueryResult)"""
        result = self.list()
        if result.error is not None or not slug:
            return None, result
        slug = slug.lower()
        for category in result.data or []:
            if (category.get('slug') or '').lower() == slug:
                return category, result
        return None, result

    def slugs(self):
        """已知分类 slug 列表，读取失败时返回 None"""
        result = self.list()
        if result.error is not None:
            return None
        return [c['slug'] for c in result.data or []]

    def create(self, data, **callbacks):
        record = clean_record(data, CATEGORY_FIELDS, ('name', 'slug'))
        return self.mutate(lambda: self.store.insert(self.table, record), self.INVALIDATES, **callbacks)

    def update(self, category_id, data, **callbacks):
        record = clean_record(data, CATEGORY_FIELDS, ('name', 'slug'))

        def run():
            row = self.store.update(self.table, category_id, record)
            if row is None:
                raise NotFound('Category not found')
            return row

        return self.mutate(run, self.INVALIDATES, **callbacks)

    def delete(self, category_id, **callbacks):
        return self.mutate(lambda: self.store.delete(self.table, category_id), self.INVALIDATES, **callbacks)
