from flask import render_template, redirect, url_for, flash, abort, current_app
from flask_login import current_user

from . import pages_bp
from .forms import PageForm
from app.services.backend import backend
from app.utils.editor import EditorDraft
from app.utils.permissions import admin_required
from app.utils.rendering import fetch_error
from app.utils.security import issue_submission_token, claim_submission_token, release_submission_token

PAGE_DEFAULTS = {
    'title': '',
    'slug': '',
    'content': '',
    'is_published': False,
    'meta_title': '',
    'meta_description': '',
    'og_image': '',
}


@pages_bp.route('/pages')
@admin_required
def index():
    result = backend.pages.list()
    if result.error is not None:
        return fetch_error(result, 'Pages could not be loaded')
    return render_template('admin/pages/index.html', pages=result.data or [])


@pages_bp.route('/pages/<page_id>', methods=['GET', 'POST'])
@admin_required
def editor(page_id):
    """页面编辑器，page_id 为 'new' 时新建"""
    is_new = page_id == 'new'
    record = None
    if is_new:
        draft = EditorDraft.for_new(PAGE_DEFAULTS)
    else:
        result = backend.pages.get(page_id)
        if result.error is not None:
            return fetch_error(result, 'This page could not be loaded')
        record = result.data
        if record is None:
            abort(404)
        draft = EditorDraft.from_record(record, PAGE_DEFAULTS)

    form = PageForm(data=draft.values)
    if is_new and not form.is_submitted():
        form.submission_token.data = issue_submission_token()

    if form.validate_on_submit():
        draft.apply({name: getattr(form, name).data for name in PAGE_DEFAULTS})
        form.slug.data = draft['slug']

        if not draft['slug']:
            flash('A slug is required.', 'danger')
        elif is_new:
            token = form.submission_token.data
            if not claim_submission_token(token):
                flash('This page has already been submitted.', 'info')
                return redirect(url_for('pages.index'))
            outcome = backend.pages.create(draft.values)
            if outcome.ok:
                current_app.logger.info(f'📄 新页面: /page/{outcome.data["slug"]} by {current_user.email}')
                flash('Page created.', 'success')
                return redirect(url_for('pages.editor', page_id=outcome.data['id']))
            release_submission_token(token)
            flash(f'Could not create page: {outcome.error_message}', 'danger')
        else:
            outcome = backend.pages.update(page_id, draft.values)
            if outcome.ok:
                flash('Page saved.', 'success')
                return redirect(url_for('pages.editor', page_id=page_id))
            flash(f'Could not save page: {outcome.error_message}', 'danger')

    return render_template('admin/pages/editor.html', form=form, page=record, is_new=is_new)


@pages_bp.route('/pages/<page_id>/delete', methods=['POST'])
@admin_required
def delete(page_id):
    outcome = backend.pages.delete(page_id)
    if outcome.ok:
        flash('Page deleted.', 'success')
    else:
        flash(f'Could not delete page: {outcome.error_message}', 'danger')
    return redirect(url_for('pages.index'))
