from app.services.base import BaseAccessor

SEO_FIELDS = ('site_title', 'site_description', 'default_og_image', 'twitter_handle', 'google_analytics_id')


class SettingsService(BaseAccessor):
    """site_settings 键值设置，缓存前缀 'site-settings'"""
    table = 'site_settings'
    INVALIDATES = [('site-settings',)]

    def get(self, key):
        return self.fetch(
            ('site-settings', key),
            lambda: self.store.query(self.table).eq('key', key).maybe_single(),
        )

    def value(self, key, default=None):
        """读取设置值，未配置或读取失败时返回 default"""
        result = self.get(key)
        if result.error is not None or not result.data:
            return default
        return result.data.get('value') or default

    def save(self, key, value, **callbacks):
        def run():
            existing = self.store.query(self.table).eq('key', key).maybe_single()
            if existing:
                return self.store.update(self.table, existing['id'], {'value': value})
            return self.store.insert(self.table, {'key': key, 'value': value})

        return self.mutate(run, self.INVALIDATES, **callbacks)
