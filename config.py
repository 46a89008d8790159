import os
import tempfile
from dotenv import load_dotenv

# 加载 .env 环境变量
load_dotenv()
basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    """基础配置类"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'hard-to-guess-string'

    # 数据后端: sql (本地 SQLAlchemy) 或 supabase (远程 REST)
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'sql')
    AUTH_BACKEND = os.environ.get('AUTH_BACKEND', 'sql')
    # 媒体存储: local / cloudinary / supabase
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'local')

    # Supabase 配置
    SUPABASE_URL = os.environ.get('SUPABASE_URL', '')
    SUPABASE_KEY = os.environ.get('SUPABASE_KEY', '')
    SUPABASE_TIMEOUT = float(os.environ.get('SUPABASE_TIMEOUT', '15'))
    MEDIA_BUCKET = os.environ.get('MEDIA_BUCKET', 'media')

    # Cloudinary 配置
    CLOUDINARY_URL = os.environ.get('CLOUDINARY_URL')
    CLOUDINARY_CLOUD_NAME = os.environ.get('CLOUDINARY_CLOUD_NAME')
    CLOUDINARY_API_KEY = os.environ.get('CLOUDINARY_API_KEY')
    CLOUDINARY_API_SECRET = os.environ.get('CLOUDINARY_API_SECRET')

    # 数据库配置 (仅 sql 后端使用)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_RECORD_QUERIES = True

    # 文件上传配置
    UPLOAD_FOLDER = os.path.join(basedir, 'app', 'static', 'uploads')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 限制最大上传 16MB

    # 缓存配置
    # 查询缓存的过期标记和进行中的请求只保存在当前进程，后端必须同样是进程内的 SimpleCache，
    # 换成 Redis 等共享后端会让其他进程读到本进程已失效的数据
    CACHE_TYPE = "SimpleCache"
    CACHE_DEFAULT_TIMEOUT = 300
    # 查询缓存条目的存活时间，0 表示只靠失效机制刷新
    QUERY_CACHE_TIMEOUT = int(os.environ.get('QUERY_CACHE_TIMEOUT', '0'))
    # 查询缓存最多跟踪的 key 数量，超出后淘汰最久未使用的空闲条目
    QUERY_CACHE_MAX_ENTRIES = int(os.environ.get('QUERY_CACHE_MAX_ENTRIES', '1000'))
    # 防重复提交令牌的有效期 (秒)
    SUBMISSION_TOKEN_TIMEOUT = 600

    # categories 表为空时文章编辑器使用的分类
    ARTICLE_CATEGORIES_FALLBACK = ['wellness', 'travel', 'creativity', 'growth', 'uncategorized']

    SITE_NAME = os.environ.get('SITE_NAME', 'Perspective')

    @staticmethod
    def init_app(app):
        # 确保上传目录与 sqlite 实例目录存在
        os.makedirs(os.path.join(basedir, 'instance'), exist_ok=True)
        upload_folder = app.config['UPLOAD_FOLDER']
        if not os.path.exists(upload_folder):
            os.makedirs(upload_folder)

class DevelopmentConfig(Config):
    """开发环境配置"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'editorial.db')

class ProductionConfig(Config):
    """生产环境配置"""
    DEBUG = False

    DATABASE_URL = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'editorial_prod.db')
    # PostgreSQL URL 修正（部分平台使用 postgres://）
    if DATABASE_URL and DATABASE_URL.startswith('postgres://'):
        DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = DATABASE_URL

    # 安全设置
    SESSION_COOKIE_SECURE = False  # 由前置代理处理 HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    STORE_BACKEND = 'sql'
    AUTH_BACKEND = 'sql'
    STORAGE_BACKEND = 'local'
    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), 'editorial-test-uploads')
    ASSETS_DEBUG = True
    ASSETS_AUTO_BUILD = False

config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
