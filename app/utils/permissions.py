"""
访问控制
三种认证状态 (unknown / anonymous / authenticated) 到页面处理方式的映射，以及后台视图使用的装饰器
"""
import enum
from functools import wraps
from flask import g, redirect, render_template, request, url_for, flash
from flask_login import current_user


class AuthState(enum.Enum):
    UNKNOWN = 'unknown'              # 认证服务尚未给出结果
    ANONYMOUS = 'anonymous'
    AUTHENTICATED = 'authenticated'


class GateDecision(enum.Enum):
    LOADING = 'loading'              # 显示等待页，不跳转也不渲染内容
    REDIRECT_LOGIN = 'redirect_login'
    DENIED = 'denied'                # 终态，不再尝试跳转
    ALLOW = 'allow'


def decide(state, is_admin=False, require_admin=True):
    """根据认证状态与角色决定受保护页面的处理方式"""
    if state is AuthState.UNKNOWN:
        return GateDecision.LOADING
    if state is AuthState.ANONYMOUS:
        return GateDecision.REDIRECT_LOGIN
    if require_admin and not is_admin:
        return GateDecision.DENIED
    return GateDecision.ALLOW


def current_auth_state():
    """当前请求的认证状态"""
    if current_user.is_authenticated:
        return AuthState.AUTHENTICATED
    if g.get('auth_unavailable'):
        return AuthState.UNKNOWN
    return AuthState.ANONYMOUS


def is_admin():
    """检查当前用户是否是管理员"""
    return current_user.is_authenticated and bool(getattr(current_user, 'is_admin', False))


def _gate(f, require_admin):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        decision = decide(current_auth_state(), is_admin(), require_admin)

        if decision is GateDecision.LOADING:
            return render_template('auth/pending.html'), 503

        if decision is GateDecision.REDIRECT_LOGIN:
            flash('Please sign in to continue.', 'warning')
            return redirect(url_for('auth.login', next=request.full_path.rstrip('?')))

        if decision is GateDecision.DENIED:
            return render_template('errors/access_denied.html'), 403

        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """
    管理员权限装饰器
    未登录跳转登录页 (保留原路径)，非管理员显示拒绝访问且不执行视图
    """
    return _gate(f, require_admin=True)


def login_required(f):
    """只要求已登录"""
    return _gate(f, require_admin=False)


def get_admin_menu_items():
    """后台侧边栏菜单"""
    return [
        {'name': 'Dashboard', 'icon': 'fa-chart-pie', 'endpoint': 'admin.dashboard'},
        {'name': 'Hero', 'icon': 'fa-image', 'endpoint': 'admin.hero'},
        {'name': 'Articles', 'icon': 'fa-newspaper', 'endpoint': 'articles.index'},
        {'name': 'Categories', 'icon': 'fa-tags', 'endpoint': 'articles.categories'},
        {'name': 'Pages', 'icon': 'fa-file-alt', 'endpoint': 'pages.index'},
        {'name': 'Page Content', 'icon': 'fa-columns', 'endpoint': 'admin.page_sections'},
        {'name': 'Site Sections', 'icon': 'fa-globe', 'endpoint': 'admin.site_sections'},
        {'name': 'Section Cards', 'icon': 'fa-th-large', 'endpoint': 'admin.section_cards'},
        {'name': 'Media', 'icon': 'fa-folder-open', 'endpoint': 'media.index'},
        {'name': 'SEO', 'icon': 'fa-search', 'endpoint': 'admin.seo'},
        {'name': 'Settings', 'icon': 'fa-cog', 'endpoint': 'admin.settings'},
    ]
