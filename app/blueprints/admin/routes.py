import uuid

from flask import render_template, redirect, request, url_for, flash, abort, current_app
from flask_login import current_user

from . import admin_bp
from .forms import HeroForm, PageSectionForm, SectionForm, CardsForm, SEOForm
from app.models.sections import parse_section
from app.services.backend import backend
from app.services.section_service import CARD_SECTIONS
from app.services.settings_service import SEO_FIELDS
from app.utils.permissions import admin_required
from app.utils.rendering import fetch_error

CONTENT_PREFIX = 'content-'


def _find(result, record_id):
    for row in result.data or []:
        if row['id'] == record_id:
            return row
    return None


def _content_formdata():
    """提取 content-<name> 形式的动态字段"""
    return {
        name[len(CONTENT_PREFIX):]: value
        for name, value in request.form.items()
        if name.startswith(CONTENT_PREFIX)
    }


@admin_bp.route('/')
@admin_required
def dashboard():
    """后台首页：内容统计与最近文章"""
    articles = backend.articles.list()
    if articles.error is not None:
        return fetch_error(articles, 'Dashboard could not be loaded')
    pages = backend.pages.list()
    media = backend.media.list()

    all_articles = articles.data or []
    stats = [
        {'title': 'Total Articles', 'value': len(all_articles), 'endpoint': 'articles.index'},
        {'title': 'Published', 'value': sum(1 for a in all_articles if a['status'] == 'published'),
         'endpoint': 'articles.index'},
        {'title': 'Pages', 'value': len(pages.data or []), 'endpoint': 'pages.index'},
        {'title': 'Media Files', 'value': len(media.data or []), 'endpoint': 'media.index'},
    ]
    return render_template('admin/dashboard.html', stats=stats, recent_articles=all_articles[:5])


@admin_bp.route('/hero', methods=['GET', 'POST'])
@admin_required
def hero():
    """首页主视觉编辑 (没有启用中的记录时新建)"""
    result = backend.hero.get_active()
    if result.error is not None:
        return fetch_error(result, 'Hero content could not be loaded')
    current = result.data

    form = HeroForm(data=current or {})
    if form.validate_on_submit():
        data = {name: getattr(form, name).data for name in
                ('title', 'subtitle', 'background_image', 'button_text', 'button_link')}
        if current:
            outcome = backend.hero.update(current['id'], data)
        else:
            outcome = backend.hero.create(data)

        if outcome.ok:
            current_app.logger.info(f'🖼️ 主视觉已更新 by {current_user.email}')
            flash('Hero section saved.', 'success')
            return redirect(url_for('admin.hero'))
        flash(f'Could not save hero section: {outcome.error_message}', 'danger')

    return render_template('admin/hero.html', form=form, hero=current)


@admin_bp.route('/site-sections')
@admin_required
def site_sections():
    result = backend.site_sections.list()
    if result.error is not None:
        return fetch_error(result, 'Site sections could not be loaded')
    sections = [
        (row, parse_section(row['section_key'], row.get('content')))
        for row in result.data or []
        if row['section_key'] not in CARD_SECTIONS
    ]
    return render_template('admin/site_sections.html', sections=sections)


@admin_bp.route('/site-sections/<section_id>', methods=['GET', 'POST'])
@admin_required
def edit_site_section(section_id):
    result = backend.site_sections.list()
    if result.error is not None:
        return fetch_error(result, 'Site sections could not be loaded')
    row = _find(result, section_id)
    if row is None:
        abort(404)

    section = parse_section(row['section_key'], row.get('content'))
    form = SectionForm()
    if form.validate_on_submit():
        section.update_from_form(_content_formdata())
        outcome = backend.site_sections.update_content(row['id'], section.to_content())
        if outcome.ok:
            flash(f'{row["section_name"]} saved.', 'success')
            return redirect(url_for('admin.site_sections'))
        flash(f'Could not save section: {outcome.error_message}', 'danger')

    return render_template(
        'admin/section_editor.html',
        form=form,
        record=row,
        heading=row['section_name'],
        fields=section.form_fields(),
        back_url=url_for('admin.site_sections'),
    )


@admin_bp.route('/page-sections')
@admin_required
def page_sections():
    result = backend.page_sections.list()
    if result.error is not None:
        return fetch_error(result, 'Page content could not be loaded')
    return render_template('admin/page_sections.html', sections=result.data or [])


@admin_bp.route('/page-sections/<section_id>', methods=['GET', 'POST'])
@admin_required
def edit_page_section(section_id):
    """页面内容编辑：标题 / 副标题 / 启用状态 + 按页面类型解析的 content"""
    result = backend.page_sections.list()
    if result.error is not None:
        return fetch_error(result, 'Page content could not be loaded')
    row = _find(result, section_id)
    if row is None:
        abort(404)

    section = parse_section(row['page_key'], row.get('content'))
    form = PageSectionForm(data=row)
    if form.validate_on_submit():
        section.update_from_form(_content_formdata())
        outcome = backend.page_sections.update(row['id'], {
            'title': (form.title.data or '').strip() or None,
            'subtitle': (form.subtitle.data or '').strip() or None,
            'is_active': form.is_active.data,
            'content': section.to_content(),
        })
        if outcome.ok:
            flash(f'{row["page_name"]} saved.', 'success')
            return redirect(url_for('admin.page_sections'))
        flash(f'Could not save page content: {outcome.error_message}', 'danger')

    return render_template(
        'admin/section_editor.html',
        form=form,
        record=row,
        heading=row['page_name'],
        fields=section.form_fields(),
        back_url=url_for('admin.page_sections'),
    )


def _cards_forms(rows, posted_key=None, posted_form=None):
    """每个卡片组一个表单；只有提交的那一个读取请求数据"""
    by_key = {row['section_key']: row for row in rows}
    forms = []
    for key, name in CARD_SECTIONS.items():
        if key == posted_key:
            forms.append((key, name, posted_form))
            continue
        row = by_key.get(key)
        cards = parse_section(key, row.get('content')).cards if row else []
        data = {'cards': [dict(card, card_id=card['id']) for card in cards]}
        forms.append((key, name, CardsForm(formdata=None, data=data, prefix=key)))
    return forms


@admin_bp.route('/section-cards')
@admin_required
def section_cards():
    result = backend.section_cards.list()
    if result.error is not None:
        return fetch_error(result, 'Section cards could not be loaded')
    return render_template('admin/section_cards.html', forms=_cards_forms(result.data or []))


@admin_bp.route('/section-cards/<section_key>', methods=['POST'])
@admin_required
def save_section_cards(section_key):
    """保存卡片组；"Add card" 只在表单中追加空卡片，不写入"""
    if section_key not in CARD_SECTIONS:
        abort(404)
    result = backend.section_cards.list()
    if result.error is not None:
        return fetch_error(result, 'Section cards could not be loaded')

    form = CardsForm(prefix=section_key)
    if form.validate_on_submit():
        if form.add.data:
            form.cards.append_entry({'card_id': uuid.uuid4().hex})
        else:
            cards = [
                {
                    'id': entry.card_id.data or uuid.uuid4().hex,
                    'title': (entry.title.data or '').strip(),
                    'description': (entry.description.data or '').strip(),
                    'image': (entry.image.data or '').strip(),
                    'link': (entry.link.data or '').strip(),
                }
                for entry in form.cards
                if not entry.remove.data
            ]
            outcome = backend.section_cards.save(section_key, CARD_SECTIONS[section_key], cards)
            if outcome.ok:
                flash(f'{CARD_SECTIONS[section_key]} saved.', 'success')
                return redirect(url_for('admin.section_cards'))
            flash(f'Could not save cards: {outcome.error_message}', 'danger')

    forms = _cards_forms(result.data or [], section_key, form)
    return render_template('admin/section_cards.html', forms=forms)


@admin_bp.route('/seo', methods=['GET', 'POST'])
@admin_required
def seo():
    result = backend.settings.get('seo')
    if result.error is not None:
        return fetch_error(result, 'SEO settings could not be loaded')
    current = (result.data or {}).get('value') or {}

    form = SEOForm(data=current)
    if form.validate_on_submit():
        value = {name: (getattr(form, name).data or '').strip() for name in SEO_FIELDS}
        outcome = backend.settings.save('seo', value)
        if outcome.ok:
            flash('SEO settings saved.', 'success')
            return redirect(url_for('admin.seo'))
        flash(f'Could not save SEO settings: {outcome.error_message}', 'danger')

    return render_template('admin/seo.html', form=form)


@admin_bp.route('/settings')
@admin_required
def settings():
    """账户信息"""
    return render_template('admin/settings.html', user=current_user)
