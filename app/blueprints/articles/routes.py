from flask import render_template, redirect, request, url_for, flash, abort, current_app
from flask_login import current_user

from . import articles_bp
from .forms import ArticleForm, CategoryForm
from app.services.backend import backend
from app.utils.editor import EditorDraft
from app.utils.permissions import admin_required
from app.utils.rendering import fetch_error
from app.utils.security import issue_submission_token, claim_submission_token, release_submission_token

ARTICLE_DEFAULTS = {
    'title': '',
    'slug': '',
    'excerpt': '',
    'content': '',
    'featured_image': '',
    'category': '',
    'author_name': '',
    'status': 'draft',
    'read_time': '5 min read',
    'meta_title': '',
    'meta_description': '',
    'og_image': '',
}

CATEGORY_DEFAULTS = {'name': '', 'slug': '', 'description': ''}


def category_choices(current=None):
    """文章分类选项：来自分类表，读取失败或为空时使用配置中的备选列表"""
    slugs = backend.categories.slugs() or list(current_app.config['ARTICLE_CATEGORIES_FALLBACK'])
    if current and current not in slugs:
        slugs.append(current)
    return [(slug, slug.replace('-', ' ').title()) for slug in slugs]


@articles_bp.route('/articles')
@admin_required
def index():
    """文章列表 (标题 / 分类搜索)"""
    search = request.args.get('q', '', type=str)
    result = backend.articles.search(search)
    if result.error is not None:
        return fetch_error(result, 'Articles could not be loaded')
    return render_template(
        'admin/articles/index.html',
        articles=result.data,
        search=search,
    )


@articles_bp.route('/articles/<article_id>', methods=['GET', 'POST'])
@admin_required
def editor(article_id):
    """文章编辑器，article_id 为 'new' 时新建"""
    is_new = article_id == 'new'
    record = None
    if is_new:
        draft = EditorDraft.for_new(ARTICLE_DEFAULTS)
    else:
        result = backend.articles.get(article_id)
        if result.error is not None:
            return fetch_error(result, 'This article could not be loaded')
        record = result.data
        if record is None:
            abort(404)
        draft = EditorDraft.from_record(record, ARTICLE_DEFAULTS)

    form = ArticleForm(data=draft.values)
    form.category.choices = category_choices(draft['category'])
    if is_new and not form.is_submitted():
        form.submission_token.data = issue_submission_token()

    if form.validate_on_submit():
        draft.apply({name: getattr(form, name).data for name in ARTICLE_DEFAULTS})
        form.slug.data = draft['slug']

        if not draft['slug']:
            flash('A slug is required.', 'danger')
        elif is_new:
            token = form.submission_token.data
            if not claim_submission_token(token):
                flash('This article has already been submitted.', 'info')
                return redirect(url_for('articles.index'))

            data = dict(draft.values, author_id=current_user.id)
            outcome = backend.articles.create(data)
            if outcome.ok:
                current_app.logger.info(f'📝 新文章: {outcome.data["title"]} by {current_user.email}')
                flash('Article created.', 'success')
                return redirect(url_for('articles.editor', article_id=outcome.data['id']))
            release_submission_token(token)
            flash(f'Could not create article: {outcome.error_message}', 'danger')
        else:
            outcome = backend.articles.update(article_id, draft.values)
            if outcome.ok:
                flash('Article saved.', 'success')
                return redirect(url_for('articles.editor', article_id=article_id))
            flash(f'Could not save article: {outcome.error_message}', 'danger')

    return render_template('admin/articles/editor.html', form=form, article=record, is_new=is_new)


@articles_bp.route('/articles/<article_id>/delete', methods=['POST'])
@admin_required
def delete(article_id):
    outcome = backend.articles.delete(article_id)
    if outcome.ok:
        current_app.logger.info(f'🗑️ 删除文章 {article_id} by {current_user.email}')
        flash('Article deleted.', 'success')
    else:
        flash(f'Could not delete article: {outcome.error_message}', 'danger')
    return redirect(url_for('articles.index'))


@articles_bp.route('/categories', methods=['GET', 'POST'])
@articles_bp.route('/categories/<category_id>', methods=['GET', 'POST'])
@admin_required
def categories(category_id=None):
    """分类管理：列表 + 新建 / 编辑表单"""
    result = backend.categories.list()
    if result.error is not None:
        return fetch_error(result, 'Categories could not be loaded')

    editing = None
    if category_id is not None:
        editing = next((c for c in result.data or [] if c['id'] == category_id), None)
        if editing is None:
            abort(404)
        draft = EditorDraft.from_record(editing, CATEGORY_DEFAULTS, title_field='name')
    else:
        draft = EditorDraft.for_new(CATEGORY_DEFAULTS, title_field='name')

    form = CategoryForm(data=draft.values)
    if editing is None and not form.is_submitted():
        form.submission_token.data = issue_submission_token()

    if form.validate_on_submit():
        draft.apply({name: getattr(form, name).data for name in CATEGORY_DEFAULTS})
        form.slug.data = draft['slug']

        if not draft['slug']:
            flash('A slug is required.', 'danger')
        elif editing is None:
            token = form.submission_token.data
            if not claim_submission_token(token):
                flash('This category has already been submitted.', 'info')
                return redirect(url_for('articles.categories'))
            outcome = backend.categories.create(draft.values)
            if outcome.ok:
                flash(f'Category "{outcome.data["name"]}" created.', 'success')
                return redirect(url_for('articles.categories'))
            release_submission_token(token)
            flash(f'Could not create category: {outcome.error_message}', 'danger')
        else:
            outcome = backend.categories.update(category_id, draft.values)
            if outcome.ok:
                flash('Category saved.', 'success')
                return redirect(url_for('articles.categories'))
            flash(f'Could not save category: {outcome.error_message}', 'danger')

    return render_template(
        'admin/articles/categories.html',
        categories=result.data or [],
        form=form,
        editing=editing,
    )


@articles_bp.route('/categories/<category_id>/delete', methods=['POST'])
@admin_required
def delete_category(category_id):
    """删除分类 (引用该分类的文章保持原 category 字符串)"""
    outcome = backend.categories.delete(category_id)
    if outcome.ok:
        flash('Category deleted.', 'success')
    else:
        flash(f'Could not delete category: {outcome.error_message}', 'danger')
    return redirect(url_for('articles.categories'))
