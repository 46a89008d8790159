# 按照依赖顺序导入
from .base import BaseModel
from .auth import User, UserRole
from .content import (
    Article, Page, Category, MediaItem,
    HeroContent, PageSection, SiteSection, SiteSetting
)

# 远程表名 -> 本地模型，供 SqlStore 使用
TABLES = {
    'articles': Article,
    'pages': Page,
    'categories': Category,
    'media': MediaItem,
    'hero_content': HeroContent,
    'page_sections': PageSection,
    'site_sections': SiteSection,
    'site_settings': SiteSetting,
    'user_roles': UserRole,
}
