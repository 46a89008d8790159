from flask import render_template, redirect, request, url_for, flash, session, jsonify, current_app
from flask_login import login_user, logout_user, current_user

from app.blueprints.auth import auth_bp
from app.blueprints.auth.forms import LoginForm, RegisterForm
from app.exceptions import AuthError, AuthUnavailable, ValidationError
from app.extensions import SESSION_KEY
from app.services.backend import backend
from app.utils.captcha import check_captcha, issue_captcha
from app.utils.permissions import login_required
from app.utils.security import rate_limit, safe_next_url


def _landing_url(user):
    return url_for('admin.dashboard') if user.is_admin else url_for('main.index')


@auth_bp.route('/admin/login', methods=['GET', 'POST'])
@rate_limit(max_requests=10, window=60)
def login():
    # 如果已登录，直接跳转
    if current_user.is_authenticated:
        return redirect(safe_next_url(request.args.get('next'), _landing_url(current_user)))

    form = LoginForm()
    if form.validate_on_submit():
        try:
            user = backend.auth.sign_in(form.email.data, form.password.data)
        except AuthError as e:
            remaining = (e.payload or {}).get('remaining_attempts')
            if remaining:
                flash(f'{e.message}. Attempts remaining: {remaining}', 'danger')
            else:
                flash(e.message, 'danger')
            return render_template('auth/login.html', form=form), 401
        except AuthUnavailable as e:
            current_app.logger.error(f'❌ 认证服务不可达: {e.message}')
            flash('The sign-in service is unavailable. Please try again shortly.', 'danger')
            return render_template('auth/login.html', form=form), 503

        login_user(user)
        session[SESSION_KEY] = user.to_session()

        # 回到登录前请求的页面 (防止开放重定向攻击)
        next_page = safe_next_url(request.args.get('next'), _landing_url(user))
        flash(f'Welcome back, {user.display_name}.', 'success')
        return redirect(next_page)

    return render_template('auth/login.html', form=form)


@auth_bp.route('/admin/logout')
@login_required
def logout():
    backend.auth.sign_out(current_user)
    logout_user()
    session.pop(SESSION_KEY, None)
    flash('You have been signed out.', 'info')
    return redirect(url_for('main.index'))


@auth_bp.route('/auth/register', methods=['GET', 'POST'])
@rate_limit(max_requests=5, window=60)
def register():
    """注册 (默认普通用户，管理员角色需在认证服务中授予)"""
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))

    form = RegisterForm()

    if form.validate_on_submit():
        # 验证码只能使用一次
        if not check_captcha(form.captcha.data):
            flash('The verification code is incorrect.', 'danger')
        else:
            try:
                backend.auth.sign_up(form.email.data, form.password.data, form.full_name.data or None)
            except (AuthError, ValidationError) as e:
                flash(e.message, 'warning')
            except AuthUnavailable:
                flash('The sign-up service is unavailable. Please try again shortly.', 'danger')
            else:
                flash('Account created. Please sign in.', 'success')
                return redirect(url_for('auth.login'))

    # GET 请求或提交失败时，生成新验证码
    return render_template('auth/register.html', form=form, captcha_image=issue_captcha())


@auth_bp.route('/auth/refresh-captcha')
def refresh_captcha():
    """AJAX刷新验证码"""
    return jsonify({'image': issue_captcha()})
