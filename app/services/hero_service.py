from app.exceptions import NotFound
from app.services.base import BaseAccessor, clean_record

HERO_FIELDS = ('title', 'subtitle', 'background_image', 'button_text', 'button_link', 'is_active')


class HeroService(BaseAccessor):
    """首页主视觉，只读取 is_active=True 的一条，缓存前缀 'hero-content'"""
    table = 'hero_content'
    INVALIDATES = [('hero-content',)]

    def get_active(self):
        return self.fetch(
            ('hero-content',),
            lambda: self.store.query(self.table).eq('is_active', True).maybe_single(),
        )

    def create(self, data, **callbacks):
        record = clean_record(data, HERO_FIELDS, ('title',))
        record.setdefault('is_active', True)
        return self.mutate(lambda: self.store.insert(self.table, record), self.INVALIDATES, **callbacks)

    def update(self, hero_id, data, **callbacks):
        record = clean_record(data, HERO_FIELDS, ('title',))

        def run():
            row = self.store.update(self.table, hero_id, record)
            if row is None:
                raise NotFound('Hero content not found')
            return row

        return self.mutate(run, self.INVALIDATES, **callbacks)
