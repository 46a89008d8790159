from flask import g, session
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_caching import Cache
from flask_assets import Environment
from flask_wtf.csrf import CSRFProtect

from app.exceptions import AuthUnavailable

# 初始化扩展对象 (暂不绑定 app)
db = SQLAlchemy()
migrate = Migrate()
cache = Cache()
assets = Environment()
login_manager = LoginManager()
csrf = CSRFProtect()

# 配置 LoginManager
login_manager.login_view = 'auth.login'  # 未登录跳转视图
login_manager.login_message = 'Please sign in to continue.'
login_manager.login_message_category = 'warning'  # 消息类别
login_manager.session_protection = 'basic'

SESSION_KEY = 'auth_session'


@login_manager.user_loader
def load_user(user_id):
    """
    Flask-Login 用户加载回调
    认证服务不可达时记录到 g.auth_unavailable，按匿名处理，由访问控制决定显示等待页
    """
    from app.services.backend import backend

    try:
        user = backend.auth.get_user(user_id, session.get(SESSION_KEY) or {})
    except AuthUnavailable as e:
        g.auth_unavailable = True
        g.auth_error = e.message
        return None
    if user is None:
        session.pop(SESSION_KEY, None)
        return None
    # 令牌可能在刷新后变化
    data = user.to_session()
    if session.get(SESSION_KEY) != data:
        session[SESSION_KEY] = data
    return user
