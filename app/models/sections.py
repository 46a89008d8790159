"""
区块内容结构
page_sections / site_sections 的 content 字段是自由 JSON，这里按区块 key 解析为具体类型，
未登记的 key 解析为 UnknownSection，按原始键值通用渲染。

字段类型 (用于后台表单):
    text      单行文本
    textarea  多行文本 (空行分段)
    lines     每行一项的字符串列表
    pairs     每行 "标题 | 描述" 的对象列表
"""
import re
from dataclasses import dataclass, field, fields, asdict

BLANK_LINE = re.compile(r"\r?\n\s*\r?\n")


def paragraphs(text):
    """按空行分段"""
    return [p.strip() for p in BLANK_LINE.split(text or '') if p.strip()]


def _form_text(raw):
    """表单文本：统一换行符 (浏览器提交 textarea 时使用 CRLF)"""
    return (raw or '').replace('\r\n', '\n').replace('\r', '\n').strip()


def _lines_to_text(values):
    return '\n'.join(str(v) for v in values or [])


def _text_to_lines(text):
    return [line.strip() for line in (text or '').splitlines() if line.strip()]


def _pairs_to_text(values):
    return '\n'.join(f"{v.get('title', '')} | {v.get('description', '')}" for v in values or [])


def _text_to_pairs(text):
    pairs = []
    for line in _text_to_lines(text):
        title, _, description = line.partition('|')
        pairs.append({'title': title.strip(), 'description': description.strip()})
    return pairs


class SectionContent:
    """已登记区块的公共行为"""
    KINDS = {}

    @classmethod
    def from_content(cls, content):
        content = content if isinstance(content, dict) else {}
        values = {}
        for f in fields(cls):
            if f.name not in content or content[f.name] is None:
                continue
            value = content[f.name]
            kind = cls.KINDS.get(f.name, 'text')
            if kind in ('lines', 'pairs', 'cards'):
                values[f.name] = list(value) if isinstance(value, list) else []
            else:
                values[f.name] = str(value)
        return cls(**values)

    def to_content(self):
        return asdict(self)

    def form_fields(self):
        """[(name, kind, 表单文本)]"""
        result = []
        for f in fields(self):
            kind = self.KINDS.get(f.name, 'text')
            value = getattr(self, f.name)
            if kind == 'lines':
                value = _lines_to_text(value)
            elif kind == 'pairs':
                value = _pairs_to_text(value)
            elif kind == 'cards':
                continue
            result.append((f.name, kind, value))
        return result

    def update_from_form(self, formdata):
        for f in fields(self):
            if f.name not in formdata:
                continue
            kind = self.KINDS.get(f.name, 'text')
            raw = _form_text(formdata.get(f.name))
            if kind == 'lines':
                value = _text_to_lines(raw)
            elif kind == 'pairs':
                value = _text_to_pairs(raw)
            elif kind == 'cards':
                continue
            else:
                value = raw
            setattr(self, f.name, value)
        return self


@dataclass
class IntroSection(SectionContent):
    heading: str = ('Perspective is a space for exploring ideas, finding inspiration, '
                    'and discovering new ways of seeing the world.')
    description: str = ('From mindful living and personal growth to travel experiences and creative '
                        'pursuits, we share perspectives that enrich daily life.')
    KINDS = {'description': 'textarea'}


@dataclass
class NewsletterSection(SectionContent):
    heading: str = 'Stay Inspired'
    description: str = 'Subscribe to receive our latest articles, insights, and inspiration directly in your inbox.'
    button_text: str = 'Subscribe'
    KINDS = {'description': 'textarea'}


@dataclass
class FooterSection(SectionContent):
    copyright: str = '© Perspective. All rights reserved.'


@dataclass
class CardsSection(SectionContent):
    cards: list = field(default_factory=list)
    KINDS = {'cards': 'cards'}

    @classmethod
    def from_content(cls, content):
        section = super().from_content(content)
        section.cards = [
            {
                'id': str(card.get('id') or index + 1),
                'title': str(card.get('title') or ''),
                'description': str(card.get('description') or ''),
                'image': str(card.get('image') or ''),
                'link': str(card.get('link') or ''),
            }
            for index, card in enumerate(section.cards) if isinstance(card, dict)
        ]
        return section


@dataclass
class AboutPage(SectionContent):
    story_title: str = 'Our Story'
    story_content: str = ''
    mission_title: str = 'Our Mission'
    mission_content: str = ''
    mission_points: list = field(default_factory=list)
    values: list = field(default_factory=list)
    cta_title: str = 'Join Our Community'
    cta_description: str = 'Subscribe to receive our latest articles, insights, and inspiration directly in your inbox.'
    KINDS = {
        'story_content': 'textarea',
        'mission_content': 'textarea',
        'mission_points': 'lines',
        'values': 'pairs',
        'cta_description': 'textarea',
    }

    @property
    def story_paragraphs(self):
        return paragraphs(self.story_content)


@dataclass
class TopicPage(SectionContent):
    section_title: str = ''
    section_content: str = ''
    KINDS = {'section_content': 'textarea'}

    @property
    def section_paragraphs(self):
        return paragraphs(self.section_content)


@dataclass
class UnknownSection:
    """未登记的区块：保留原始键值，字符串字段可编辑"""
    content: dict = field(default_factory=dict)

    def to_content(self):
        return dict(self.content)

    def form_fields(self):
        return [
            (name, 'textarea' if isinstance(value, str) and len(value) > 80 else 'text', value)
            for name, value in self.content.items()
            if isinstance(value, (str, int, float)) and not isinstance(value, bool)
        ]

    def update_from_form(self, formdata):
        for name, kind, _ in self.form_fields():
            if name in formdata:
                self.content[name] = _form_text(formdata.get(name))
        return self


TOPIC_KEYS = ('wellness', 'travel', 'creativity', 'growth')

SECTION_TYPES = {
    'intro': IntroSection,
    'newsletter': NewsletterSection,
    'footer': FooterSection,
    'about': AboutPage,
}
SECTION_TYPES.update({key: TopicPage for key in TOPIC_KEYS})


def section_type(key):
    if key in SECTION_TYPES:
        return SECTION_TYPES[key]
    if key and key.endswith('_cards'):
        return CardsSection
    return None


def parse_section(key, content):
    """按区块 key 解析 content，未知 key 返回 UnknownSection"""
    cls = section_type(key)
    if cls is None:
        return UnknownSection(dict(content) if isinstance(content, dict) else {})
    return cls.from_content(content)


def default_section(key):
    """区块缺失时使用的默认内容"""
    cls = section_type(key)
    return cls() if cls is not None else UnknownSection()
