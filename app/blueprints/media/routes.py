from flask import render_template, redirect, url_for, flash, abort, current_app
from flask_login import current_user

from . import media_bp
from .forms import MediaUploadForm, MediaAltForm
from app.services.backend import backend
from app.utils.file_helper import format_size
from app.utils.permissions import admin_required
from app.utils.rendering import fetch_error


def _library(upload_form=None, alt_form=None, selected=None):
    result = backend.media.list()
    if result.error is not None:
        return fetch_error(result, 'Media library could not be loaded')
    items = result.data or []
    total_size = sum(item.get('file_size') or 0 for item in items)
    return render_template(
        'admin/media/index.html',
        items=items,
        total_size=format_size(total_size),
        upload_form=upload_form or MediaUploadForm(formdata=None),
        alt_form=alt_form,
        selected=selected,
    )


@media_bp.route('/media')
@admin_required
def index():
    return _library()


@media_bp.route('/media/upload', methods=['POST'])
@admin_required
def upload():
    form = MediaUploadForm()
    if not form.validate_on_submit():
        for errors in form.errors.values():
            for error in errors:
                flash(error, 'warning')
        return redirect(url_for('media.index'))

    outcome = backend.media.upload(form.file.data, uploaded_by=current_user.id)
    if outcome.ok:
        current_app.logger.info(f'📁 上传文件 {outcome.data["name"]} ({format_size(outcome.data["file_size"])})')
        flash(f'{outcome.data["name"]} uploaded.', 'success')
    else:
        flash(f'Upload failed: {outcome.error_message}', 'danger')
    return redirect(url_for('media.index'))


@media_bp.route('/media/<media_id>', methods=['GET', 'POST'])
@admin_required
def detail(media_id):
    """文件详情与替代文本编辑"""
    item, result = backend.media.find(media_id)
    if result.error is not None:
        return fetch_error(result, 'This file could not be loaded')
    if item is None:
        abort(404)

    form = MediaAltForm(data={'alt_text': item.get('alt_text') or ''})
    if form.validate_on_submit():
        outcome = backend.media.update_alt(media_id, form.alt_text.data)
        if outcome.ok:
            flash('Alt text saved.', 'success')
            return redirect(url_for('media.detail', media_id=media_id))
        flash(f'Could not save alt text: {outcome.error_message}', 'danger')

    return _library(alt_form=form, selected=item)


@media_bp.route('/media/<media_id>/delete', methods=['POST'])
@admin_required
def delete(media_id):
    """删除文件：对象存储删除失败时保留记录"""
    item, result = backend.media.find(media_id)
    if result.error is not None:
        return fetch_error(result, 'This file could not be loaded', retry_url=url_for('media.index'))
    if item is None:
        abort(404)

    outcome = backend.media.delete(item)
    if outcome.ok:
        current_app.logger.info(f'🗑️ 删除文件 {item["name"]} by {current_user.email}')
        flash(f'{item["name"]} deleted.', 'success')
    else:
        flash(f'Could not delete file: {outcome.error_message}', 'danger')
    return redirect(url_for('media.index'))
