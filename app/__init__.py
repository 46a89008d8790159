import logging
import colorlog
from flask import Flask, render_template, request, jsonify
from flask_assets import Bundle
from config import config
from app.extensions import db, migrate, login_manager, cache, assets, csrf
from app.exceptions import CMSException
from app.services.backend import backend

# 导入 commands 模块，用于注册 CLI 命令
from app import commands


def create_app(config_name='default', transport=None, settings=None):
    """
    编辑站点应用工厂函数
    transport: 注入 httpx 传输层 (测试中使用 httpx.MockTransport)
    settings: 覆盖配置项
    """
    app = Flask(__name__)

    # 1. 加载配置
    app.config.from_object(config[config_name])
    if settings:
        app.config.update(settings)
    config[config_name].init_app(app)

    # 2. 配置日志 (先于后端初始化，便于看到后端选择)
    configure_logging(app)

    # 3. 初始化扩展
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    cache.init_app(app)
    assets.init_app(app)
    csrf.init_app(app)
    backend.init_app(app, cache, transport=transport)

    # 4. 静态资源
    register_assets(app)

    # 5. 注册蓝图 (Blueprints)
    register_blueprints(app)

    # 6. 注册全局错误处理
    register_error_handlers(app)

    # 7. 模板过滤器与全局变量
    register_template_helpers(app)

    # 8. 注册 CLI 命令
    register_commands(app)

    # 9. 本地数据库自动建表
    auto_init_database(app)

    return app


def auto_init_database(app):
    """SQL 后端在开发 / 测试环境自动建表 (生产环境使用 flask db upgrade)"""
    uses_sql = 'sql' in (app.config['STORE_BACKEND'], app.config['AUTH_BACKEND'])
    if not uses_sql or not (app.debug or app.testing):
        return
    with app.app_context():
        from app import models  # noqa: F401  注册全部模型
        db.create_all()
        app.logger.info('✅ 本地数据库表已就绪')


def register_assets(app):
    # assets 为模块级对象，多次创建应用 (测试) 时只注册一次
    bundles = {
        'site_css': Bundle('css/site.css', output='gen/site.min.css'),
        'admin_css': Bundle('css/admin.css', output='gen/admin.min.css'),
    }
    for name, bundle in bundles.items():
        if name not in assets:
            assets.register(name, bundle)


def register_blueprints(app):
    """注册所有模块蓝图"""
    # 公开站点
    from app.blueprints.main import main_bp
    app.register_blueprint(main_bp)

    # 认证 (/admin/login 与 /auth/register 路径不同，不设前缀)
    from app.blueprints.auth import auth_bp
    app.register_blueprint(auth_bp)

    # 后台首页与站点内容
    from app.blueprints.admin import admin_bp
    app.register_blueprint(admin_bp, url_prefix='/admin')

    # 文章与分类
    from app.blueprints.articles import articles_bp
    app.register_blueprint(articles_bp, url_prefix='/admin')

    # 独立页面
    from app.blueprints.pages import pages_bp
    app.register_blueprint(pages_bp, url_prefix='/admin')

    # 媒体库
    from app.blueprints.media import media_bp
    app.register_blueprint(media_bp, url_prefix='/admin')


def register_error_handlers(app):
    @app.errorhandler(404)
    def page_not_found(e):
        return render_template('errors/404.html'), 404

    @app.errorhandler(403)
    def forbidden(e):
        return render_template('errors/403.html'), 403

    @app.errorhandler(500)
    def internal_server_error(e):
        return render_template('errors/500.html'), 500

    @app.errorhandler(CMSException)
    def handle_cms_exception(e):
        app.logger.warning(f'⚠️ {e.__class__.__name__}: {e.message}')
        if request.accept_mimetypes.best == 'application/json':
            return jsonify(e.to_dict()), e.code
        return render_template('errors/error.html', error=e), e.code


def register_template_helpers(app):
    from app.utils.file_helper import format_size, get_file_icon
    from app.utils.permissions import get_admin_menu_items, is_admin
    from app.utils.rendering import format_date, article_date

    app.add_template_filter(format_date, 'format_date')
    app.add_template_filter(article_date, 'article_date')
    app.add_template_filter(format_size, 'format_size')
    app.add_template_filter(get_file_icon, 'file_icon')

    @app.context_processor
    def inject_site():
        """站点名称、SEO 设置、页脚与后台菜单 (读取失败时使用默认值)"""
        from app.models.sections import default_section, parse_section

        footer = backend.site_sections.get('footer')
        if footer.error is None and footer.data:
            footer_section = parse_section('footer', footer.data.get('content'))
        else:
            footer_section = default_section('footer')

        return {
            'site_name': app.config['SITE_NAME'],
            'seo': backend.settings.value('seo', {}),
            'footer': footer_section,
            'admin_menu': get_admin_menu_items(),
            'is_admin': is_admin(),
        }


def register_commands(app):
    """注册 Flask CLI 命令"""
    app.cli.add_command(commands.seed)
    app.cli.add_command(commands.status)
    app.cli.add_command(commands.create_admin)


def configure_logging(app):
    """配置彩色控制台日志，提升开发体验"""
    if app.debug:
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)

        formatter = colorlog.ColoredFormatter(
            "%(log_color)s[%(asctime)s] %(levelname)-8s%(reset)s %(blue)s%(message)s",
            datefmt="%H:%M:%S",
            reset=True,
            log_colors={
                'DEBUG':    'cyan',
                'INFO':     'green',
                'WARNING':  'yellow',
                'ERROR':    'red',
                'CRITICAL': 'red,bg_white',
            },
            secondary_log_colors={},
            style='%'
        )
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        app.logger.setLevel(logging.INFO)
