from flask import render_template, abort, current_app, send_from_directory, request

from . import main_bp
from app.models.sections import parse_section, default_section
from app.services.backend import backend
from app.utils.rendering import fetch_error

# 每个主题页展示的精选卡片组
TOPIC_CARDS = {'wellness': 'wellness_cards', 'travel': 'travel_cards'}


def load_site_section(key):
    """读取站点区块并解析；缺失或读取失败时使用默认内容"""
    result = backend.site_sections.get(key)
    if result.error is not None or not result.data:
        return default_section(key)
    return parse_section(key, result.data.get('content'))


def category_sidebar(current_category=None):
    """分类侧栏：全部分类 + 当前分类下的文章"""
    categories = backend.categories.list()
    related = backend.articles.by_category(current_category, limit=10) if current_category else None
    return {
        'categories': categories.data or [],
        'sidebar_articles': (related.data or []) if related is not None else [],
        'current_category': current_category,
    }


@main_bp.route('/')
def index():
    """首页：主视觉、简介、最新文章、订阅区"""
    hero = backend.hero.get_active()
    articles = backend.articles.list('published')
    if articles.error is not None:
        return fetch_error(articles, 'Articles could not be loaded')

    return render_template(
        'main/index.html',
        hero=hero.data,
        intro=load_site_section('intro'),
        newsletter=load_site_section('newsletter'),
        articles=(articles.data or [])[:6],
    )


@main_bp.route('/articles')
def articles():
    """文章列表，可按分类筛选"""
    result = backend.articles.list('published')
    if result.error is not None:
        return fetch_error(result, 'Articles could not be loaded')
    category = request.args.get('category', '', type=str).lower()
    items = result.data or []
    if category:
        items = [a for a in items if (a.get('category') or '').lower() == category]
    return render_template('main/articles.html', articles=items, **category_sidebar(category or None))


@main_bp.route('/article/<slug>')
def article(slug):
    """文章详情"""
    result = backend.articles.get_published_by_slug(slug)
    if result.error is not None:
        return fetch_error(result, 'This article could not be loaded')
    article = result.data
    if article is None:
        abort(404)

    related = backend.articles.related(article['category'], slug)
    return render_template(
        'main/article.html',
        article=article,
        related_articles=related.data or [],
        **category_sidebar(article['category'])
    )


@main_bp.route('/category/<slug>')
def category(slug):
    """分类页：分类不存在时仍按 slug 展示匹配的文章"""
    current, categories = backend.categories.get_by_slug(slug)
    articles = backend.articles.by_category(slug)
    if articles.error is not None:
        return fetch_error(articles, 'Articles could not be loaded')
    return render_template(
        'main/category.html',
        category=current,
        slug=slug,
        articles=articles.data or [],
        categories=categories.data or [],
    )


def topic_page(key):
    section = backend.page_sections.get(key)
    if section.error is not None:
        return fetch_error(section, 'This page could not be loaded')
    articles = backend.articles.by_category(key)

    cards = []
    if key in TOPIC_CARDS:
        cards_result = backend.section_cards.get(TOPIC_CARDS[key])
        if cards_result.data:
            cards = parse_section(TOPIC_CARDS[key], cards_result.data.get('content')).cards

    record = section.data or {}
    return render_template(
        'main/topic.html',
        key=key,
        page=record,
        content=parse_section(key, record.get('content')) if record else default_section(key),
        articles=articles.data or [],
        cards=cards,
    )


@main_bp.route('/wellness')
def wellness():
    return topic_page('wellness')


@main_bp.route('/travel')
def travel():
    return topic_page('travel')


@main_bp.route('/creativity')
def creativity():
    return topic_page('creativity')


@main_bp.route('/growth')
def growth():
    return topic_page('growth')


@main_bp.route('/about')
def about():
    section = backend.page_sections.get('about')
    if section.error is not None:
        return fetch_error(section, 'This page could not be loaded')
    record = section.data or {}
    return render_template(
        'main/about.html',
        page=record,
        content=parse_section('about', record.get('content')) if record else default_section('about'),
    )


@main_bp.route('/authors')
def authors():
    """作者列表 (来自已发布文章的作者名)"""
    result = backend.articles.list('published')
    if result.error is not None:
        return fetch_error(result, 'Authors could not be loaded')
    counts = {}
    for article in result.data or []:
        name = article.get('author_name') or 'Anonymous'
        counts[name] = counts.get(name, 0) + 1
    authors = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return render_template('main/authors.html', authors=authors)


@main_bp.route('/page/<slug>')
def dynamic_page(slug):
    """后台创建的独立页面"""
    result = backend.pages.get_published_by_slug(slug)
    if result.error is not None:
        return fetch_error(result, 'This page could not be loaded')
    if result.data is None:
        abort(404)
    return render_template('main/page.html', page=result.data)


@main_bp.route('/contact')
def contact():
    return render_template('main/static.html', title='Contact', template_name='contact')


@main_bp.route('/privacy')
def privacy():
    return render_template('main/static.html', title='Privacy Policy', template_name='privacy')


@main_bp.route('/terms')
def terms():
    return render_template('main/static.html', title='Terms of Service', template_name='terms')


@main_bp.route('/uploads/<path:path>')
def media_file(path):
    """本地存储后端的文件访问"""
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], path)
