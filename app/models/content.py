from app.extensions import db
from .base import BaseModel


class Article(BaseModel):
    """文章"""
    __tablename__ = 'articles'

    title = db.Column(db.String(256), nullable=False)
    slug = db.Column(db.String(256), unique=True, nullable=False, index=True)
    excerpt = db.Column(db.Text)
    content = db.Column(db.Text)  # HTML 内容
    featured_image = db.Column(db.String(512))
    # 与 categories.slug 按字符串松散关联，不建外键
    category = db.Column(db.String(64), default='uncategorized', nullable=False)
    author_id = db.Column(db.String(36))
    author_name = db.Column(db.String(128))
    status = db.Column(db.String(20), default='draft', nullable=False)  # draft, published, archived
    read_time = db.Column(db.String(32))

    meta_title = db.Column(db.String(60))
    meta_description = db.Column(db.String(160))
    og_image = db.Column(db.String(512))

    published_at = db.Column(db.DateTime)


class Page(BaseModel):
    """独立页面"""
    __tablename__ = 'pages'

    title = db.Column(db.String(256), nullable=False)
    slug = db.Column(db.String(256), unique=True, nullable=False, index=True)
    content = db.Column(db.Text)
    is_published = db.Column(db.Boolean, default=False, nullable=False)

    meta_title = db.Column(db.String(60))
    meta_description = db.Column(db.String(160))
    og_image = db.Column(db.String(512))


class Category(BaseModel):
    """文章分类"""
    __tablename__ = 'categories'

    name = db.Column(db.String(64), nullable=False)
    slug = db.Column(db.String(64), unique=True, nullable=False, index=True)
    description = db.Column(db.Text)


class MediaItem(BaseModel):
    """媒体文件记录 (文件本体在对象存储中)"""
    __tablename__ = 'media'

    name = db.Column(db.String(256), nullable=False)
    file_path = db.Column(db.String(512), nullable=False)
    file_url = db.Column(db.String(1024), nullable=False)
    file_type = db.Column(db.String(128))
    file_size = db.Column(db.Integer)  # 字节数
    alt_text = db.Column(db.String(512))
    uploaded_by = db.Column(db.String(36))


class HeroContent(BaseModel):
    """首页主视觉，只读取 is_active 的一条"""
    __tablename__ = 'hero_content'

    title = db.Column(db.String(256), nullable=False)
    subtitle = db.Column(db.Text)
    background_image = db.Column(db.String(1024))
    button_text = db.Column(db.String(64))
    button_link = db.Column(db.String(512))
    is_active = db.Column(db.Boolean, default=True, nullable=False)


class PageSection(BaseModel):
    """页面内容块 (about / wellness / travel ...)"""
    __tablename__ = 'page_sections'

    page_key = db.Column(db.String(64), unique=True, nullable=False, index=True)
    page_name = db.Column(db.String(128), nullable=False)
    title = db.Column(db.String(256), nullable=False)
    subtitle = db.Column(db.Text)
    content = db.Column(db.JSON, default=dict)
    is_active = db.Column(db.Boolean, default=True, nullable=False)


class SiteSection(BaseModel):
    """站点公共区块 (intro / newsletter / footer / 卡片组)"""
    __tablename__ = 'site_sections'

    section_key = db.Column(db.String(64), unique=True, nullable=False, index=True)
    section_name = db.Column(db.String(128), nullable=False)
    content = db.Column(db.JSON, default=dict)
    is_active = db.Column(db.Boolean, default=True, nullable=False)


class SiteSetting(BaseModel):
    """全局设置 (键值对，值为 JSON)"""
    __tablename__ = 'site_settings'

    key = db.Column(db.String(64), unique=True, nullable=False, index=True)
    value = db.Column(db.JSON, default=dict)
