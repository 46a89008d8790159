"""
页面内容块与站点区块
content 是自由 JSON，具体结构见 app.models.sections
"""
from app.exceptions import NotFound
from app.services.base import BaseAccessor

CARD_SECTIONS = {
    'wellness_cards': 'Wellness Featured Cards',
    'travel_cards': 'Travel Featured Cards',
}


class PageSectionService(BaseAccessor):
    """page_sections，缓存前缀 'page-sections' (列表) / 'page-section' (单页)"""
    table = 'page_sections'
    INVALIDATES = [('page-sections',), ('page-section',)]

    def get(self, page_key):
        return self.fetch(
            ('page-section', page_key),
            lambda: self.store.query(self.table)
                .eq('page_key', page_key).eq('is_active', True).maybe_single(),
        )

    def list(self):
        return self.fetch(('page-sections',), lambda: self.store.query(self.table).order('page_name').all())

    def update(self, section_id, data, **callbacks):
        record = {k: data[k] for k in ('title', 'subtitle', 'content', 'is_active') if k in data}

        def run():
            row = self.store.update(self.table, section_id, record)
            if row is None:
                raise NotFound('Page section not found')
            return row

        return self.mutate(run, self.INVALIDATES, **callbacks)


class SiteSectionService(BaseAccessor):
    """site_sections，缓存前缀 'site-sections' / 'site-section'"""
    table = 'site_sections'
    INVALIDATES = [('site-sections',), ('site-section',), ('site-sections-cards',)]

    def list(self):
        return self.fetch(('site-sections',), lambda: self.store.query(self.table).order('section_name').all())

    def get(self, section_key):
        return self.fetch(
            ('site-section', section_key),
            lambda: self.store.query(self.table).eq('section_key', section_key).maybe_single(),
        )

    def update_content(self, section_id, content, **callbacks):
        def run():
            row = self.store.update(self.table, section_id, {'content': content})
            if row is None:
                raise NotFound('Section not found')
            return row

        return self.mutate(run, self.INVALIDATES, **callbacks)


class SectionCardService(SiteSectionService):
    """精选卡片组 (site_sections 中 key 为 *_cards 的行)，缓存前缀 'site-sections-cards'"""

    def list(self):
        return self.fetch(
            ('site-sections-cards',),
            lambda: self.store.query(self.table)
                .in_('section_key', list(CARD_SECTIONS)).order('section_key').all(),
        )

    def save(self, section_key, section_name, cards, **callbacks):
        """区块存在则更新 content.cards，否则新建"""
        content = {'cards': [dict(card) for card in cards]}

        def run():
            existing = self.store.query(self.table).eq('section_key', section_key).maybe_single()
            if existing:
                return self.store.update(self.table, existing['id'], {'content': content})
            return self.store.insert(self.table, {
                'section_key': section_key,
                'section_name': section_name,
                'content': content,
                'is_active': True,
            })

        return self.mutate(run, self.INVALIDATES, **callbacks)
