import click
import random
from flask import current_app
from flask.cli import with_appcontext
from app.exceptions import StoreError, ValidationError
from app.extensions import db
from app.models.sections import default_section, TOPIC_KEYS
from app.services.backend import backend
from app.services.section_service import CARD_SECTIONS
from app.utils.editor import slugify
from app.utils.fake_gen import fake

CATEGORIES = [
    ('Wellness', 'wellness', 'Mindful living and everyday wellbeing'),
    ('Travel', 'travel', 'Journeys near and far'),
    ('Creativity', 'creativity', 'Making, crafting and creative practice'),
    ('Growth', 'growth', 'Learning and personal growth'),
]

SITE_SECTIONS = [
    ('intro', 'Homepage Introduction'),
    ('newsletter', 'Newsletter Signup'),
    ('footer', 'Footer'),
]

PAGE_SECTIONS = [('about', 'About Page')] + [(key, f'{key.title()} Page') for key in TOPIC_KEYS]


@click.command('status')
@with_appcontext
def status():
    """
    [验证指令] 查看各数据表的记录数
    """
    click.echo(click.style('📊 内容存储状态:', fg='cyan', bold=True))
    click.echo(f" - 存储后端: \t{current_app.config['STORE_BACKEND']}")

    empty = True
    for table in backend.store.TABLES:
        try:
            count = len(backend.store.query(table).all())
        except StoreError as e:
            click.echo(click.style(f'✘ {table} 读取失败: {e.message}', fg='red'))
            continue
        empty = empty and count == 0
        click.echo(f" - {table}: \t{count}")

    if empty:
        click.echo(click.style('⚠ 内容为空，请运行 flask seed 生成示例数据。', fg='yellow'))
    else:
        click.echo(click.style('✔ 存储连接正常，数据已存在。', fg='green'))


@click.command('seed')
@click.option('--articles', default=6, help='示例文章数量 (默认6篇)')
@click.option('--reset', is_flag=True, help='先清空本地数据库 (仅 SQL 后端)')
@click.option('--admin-email', default='admin@example.com', help='本地管理员邮箱')
@click.option('--admin-password', default='admin123', help='本地管理员密码')
@with_appcontext
def seed(articles, reset, admin_email, admin_password):
    """
    [初始化指令] 填充分类、主视觉、站点区块、页面内容、卡片组与示例文章。
    已存在的内容会跳过。
    """
    click.echo(click.style('⚡ 初始化示例内容...', fg='cyan', bold=True))

    if reset:
        if current_app.config['STORE_BACKEND'] != 'sql':
            raise click.UsageError('--reset 只适用于 SQL 存储后端')
        db.drop_all()
        db.create_all()
        backend.queries.clear()

    click.echo('正在创建分类...')
    init_categories()

    click.echo('正在写入首页与站点区块...')
    init_sections()

    click.echo('正在写入示例文章...')
    init_articles(articles)

    if current_app.config['AUTH_BACKEND'] == 'sql':
        click.echo('正在创建本地管理员...')
        ensure_admin(admin_email, admin_password)
        click.echo(f'管理员账号: {admin_email} / 密码: {admin_password}')

    click.echo(click.style('✔ 示例内容构建完成！', fg='green', bold=True))


@click.command('create-admin')
@click.argument('email')
@click.argument('password')
@with_appcontext
def create_admin(email, password):
    """创建本地管理员 (账号已存在时只授予管理员角色)"""
    if current_app.config['AUTH_BACKEND'] != 'sql':
        raise click.UsageError('远程认证服务的管理员角色请在 user_roles 表中授予')
    ensure_admin(email, password)
    click.echo(click.style(f'✔ {email} 已拥有管理员权限', fg='green'))


def _report(outcome, label):
    if outcome.ok:
        click.echo(f'  ✓ {label}')
    else:
        click.echo(click.style(f'  ⚠ 跳过 {label}: {outcome.error_message}', fg='yellow'))


def init_categories():
    existing = backend.categories.slugs() or []
    for name, slug, description in CATEGORIES:
        if slug in existing:
            continue
        outcome = backend.categories.create({'name': name, 'slug': slug, 'description': description})
        _report(outcome, f'分类 {name}')


def init_sections():
    """主视觉、站点区块、页面内容块与卡片组，各自只在缺失时创建"""
    if backend.hero.get_active().data is None:
        _report(backend.hero.create({
            'title': 'Discover New Perspectives',
            'subtitle': 'Stories on mindful living, travel and creativity.',
            'button_text': 'Start Reading',
            'button_link': '/articles',
        }), '主视觉')

    store = backend.store
    for key, name in SITE_SECTIONS:
        if store.query('site_sections').eq('section_key', key).maybe_single():
            continue
        store.insert('site_sections', {
            'section_key': key,
            'section_name': name,
            'content': default_section(key).to_content(),
            'is_active': True,
        })
        click.echo(f'  ✓ 站点区块 {name}')

    for key, name in PAGE_SECTIONS:
        if store.query('page_sections').eq('page_key', key).maybe_single():
            continue
        store.insert('page_sections', {
            'page_key': key,
            'page_name': name,
            'title': key.title() if key != 'about' else 'About Us',
            'content': default_section(key).to_content(),
            'is_active': True,
        })
        click.echo(f'  ✓ 页面内容 {name}')

    for key, name in CARD_SECTIONS.items():
        topic = key.split('_', 1)[0]
        cards = [
            {
                'id': str(index),
                'title': fake.article_title(),
                'description': fake.article_excerpt(),
                'image': '',
                'link': f'/category/{topic}',
            }
            for index in range(1, 4)
        ]
        if backend.section_cards.get(key).data is None:
            _report(backend.section_cards.save(key, name, cards), name)

    # 直接写入存储的内容不经过 mutate，需要手动失效
    backend.queries.invalidate(('site-sections',), ('site-section',), ('page-sections',), ('page-section',))


def init_articles(count):
    """示例文章，约三分之二为已发布"""
    for _ in range(count):
        title = fake.article_title()
        category = random.choice(CATEGORIES)[1]
        outcome = backend.articles.create({
            'title': title,
            'slug': f'{slugify(title)}-{fake.random_int(100, 999)}',
            'excerpt': fake.article_excerpt(),
            'content': fake.article_body(),
            'category': category,
            'author_name': fake.name(),
            'read_time': fake.read_time(),
            'status': random.choice(['published', 'published', 'draft']),
        })
        _report(outcome, f'文章 {title}')


def ensure_admin(email, password):
    from app.models.auth import User

    auth = backend.auth
    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is None:
        try:
            auth_user = auth.sign_up(email, password, 'Administrator')
        except ValidationError as e:
            raise click.ClickException(e.message)
        user_id = auth_user.id
    else:
        user_id = user.id
    auth.grant_role(user_id)
