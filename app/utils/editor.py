"""
表单编辑辅助
slug 只在新建记录时由标题自动生成，记录存在后只能手动修改，避免已发布链接被悄悄改变
"""
import re

_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def slugify(title):
    """'Hello, World! 2024' -> 'hello-world-2024'"""
    return _NON_ALNUM.sub('-', (title or '').lower()).strip('-')


class EditorDraft:
    """
    编辑器草稿：新建时取默认值，编辑时取已有记录，逐字段修改后提交
    """

    def __init__(self, values, is_new, title_field='title'):
        self.values = dict(values)
        self.is_new = is_new
        self.slug_touched = not is_new
        self.title_field = title_field

    @classmethod
    def for_new(cls, defaults, title_field='title'):
        return cls(defaults, is_new=True, title_field=title_field)

    @classmethod
    def from_record(cls, record, defaults, title_field='title'):
        values = dict(defaults)
        for name in defaults:
            value = record.get(name)
            if value is not None:
                values[name] = value
        return cls(values, is_new=False, title_field=title_field)

    def set(self, name, value):
        self.values[name] = value
        if name == self.title_field and self.is_new and not self.slug_touched:
            self.values['slug'] = slugify(value)

    def set_slug(self, value):
        self.slug_touched = True
        self.values['slug'] = value

    def apply(self, form_data):
        """
        应用提交的表单数据
        新建记录的 slug 留空时由标题生成；已有记录的 slug 只取用户提交的值
        """
        submitted_slug = (form_data.get('slug') or '').strip()
        for name, value in form_data.items():
            if name == 'slug' or name not in self.values:
                continue
            self.set(name, value)
        if submitted_slug:
            self.set_slug(submitted_slug)
        return self

    def __getitem__(self, name):
        return self.values[name]

    def get(self, name, default=None):
        return self.values.get(name, default)
