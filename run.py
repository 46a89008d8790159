import os
from app import create_app, db
from app.models import (
    User, UserRole,
    Article, Page, Category, MediaItem,
    HeroContent, PageSection, SiteSection, SiteSetting,
)
from app.services.backend import backend

# 从环境变量获取配置模式
# 支持 FLASK_ENV 或 FLASK_CONFIG
config_name = os.getenv('FLASK_ENV') or os.getenv('FLASK_CONFIG') or 'default'
if config_name in ('development', 'dev'):
    config_name = 'development'

app = create_app(config_name)

@app.shell_context_processor
def make_shell_context():
    """
    配置 Flask Shell 上下文。
    允许在命令行中使用 'flask shell' 时自动导入 db、backend 与各模型。
    """
    return dict(
        db=db,
        app=app,
        backend=backend,
        User=User,
        UserRole=UserRole,
        Article=Article,
        Page=Page,
        Category=Category,
        MediaItem=MediaItem,
        HeroContent=HeroContent,
        PageSection=PageSection,
        SiteSection=SiteSection,
        SiteSetting=SiteSetting,
    )

if __name__ == '__main__':
    print("-------------------------------------------------------")
    print("   PERSPECTIVE EDITORIAL SITE                          ")
    print("   Target: Localhost:5000                              ")
    print("-------------------------------------------------------")
    app.run(host='0.0.0.0', port=5000)
