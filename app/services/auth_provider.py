"""
认证服务
登录、注册、退出以及管理员角色查询。会话状态由认证服务决定，本应用只缓存在 session 中。

两种实现:
- SqlAuthProvider       本地用户表 + werkzeug 密码哈希
- SupabaseAuthProvider  Supabase GoTrue (/auth/v1)
"""
import logging

from flask_login import UserMixin

from app.exceptions import AuthError, AuthUnavailable, StoreError, ValidationError
from app.utils.supabase_client import SupabaseRequestError

logger = logging.getLogger(__name__)

ADMIN_ROLE = 'admin'


class AuthUser(UserMixin):
    """已登录用户 (Flask-Login 用户对象)"""

    def __init__(self, id, email, full_name=None, is_admin=False, access_token=None, refresh_token=None):
        self.id = str(id)
        self.email = email
        self.full_name = full_name
        self.is_admin = is_admin
        self.access_token = access_token
        self.refresh_token = refresh_token

    @property
    def display_name(self):
        return self.full_name or self.email

    def to_session(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
        }

    def __repr__(self):
        return f'<AuthUser {self.email} admin={self.is_admin}>'


class AuthProvider:

    def sign_in(self, email, password):
        raise NotImplementedError

    def sign_up(self, email, password, full_name=None):
        raise NotImplementedError

    def sign_out(self, user):
        pass

    def get_user(self, user_id, session_data):
        """根据 session 恢复用户；会话失效返回 None，服务不可达抛出 AuthUnavailable"""
        raise NotImplementedError

    def is_admin(self, user_id, access_token=None):
        raise NotImplementedError


class SqlAuthProvider(AuthProvider):
    """本地用户表"""

    def sign_in(self, email, password):
        from app.models.auth import User, MAX_FAILED_ATTEMPTS

        user = User.query.filter_by(email=(email or '').strip().lower()).first()

        # 1. 验证用户存在
        if user is None:
            raise AuthError('Invalid login credentials')

        # 2. 检查账号是否被锁定
        if user.is_locked():
            raise AuthError('This account is temporarily locked after repeated failed sign-ins. Try again in 30 minutes.')

        # 3. 验证密码
        if not user.verify_password(password):
            user.record_failed_login()
            remaining = MAX_FAILED_ATTEMPTS - user.failed_login_attempts
            logger.warning(f'登录失败: {user.email} (剩余 {remaining} 次)')
            raise AuthError('Invalid login credentials', payload={'remaining_attempts': max(remaining, 0)})

        # 4. 验证用户是否被封禁
        if not user.is_active_user:
            raise AuthError('This account has been disabled.')

        user.reset_failed_attempts()
        logger.info(f'✅ 登录成功: {user.email}')
        return self._to_auth_user(user)

    def sign_up(self, email, password, full_name=None):
        from app.extensions import db
        from app.models.auth import User, UserRole

        email = (email or '').strip().lower()
        if User.query.filter_by(email=email).first():
            raise ValidationError('User already registered')

        user = User(email=email, full_name=full_name, password=password)
        db.session.add(user)
        db.session.flush()
        db.session.add(UserRole(user_id=user.id, role='user'))
        db.session.commit()
        logger.info(f'✅ 新用户注册: {email}')
        return self._to_auth_user(user)

    def get_user(self, user_id, session_data):
        from app.extensions import db
        from app.models.auth import User

        user = db.session.get(User, user_id)
        if user is None or not user.is_active_user:
            return None
        return self._to_auth_user(user)

    def is_admin(self, user_id, access_token=None):
        from app.models.auth import UserRole
        return UserRole.query.filter_by(user_id=user_id, role=ADMIN_ROLE).first() is not None

    def grant_role(self, user_id, role=ADMIN_ROLE):
        from app.extensions import db
        from app.models.auth import UserRole

        if UserRole.query.filter_by(user_id=user_id, role=role).first() is None:
            db.session.add(UserRole(user_id=user_id, role=role))
            db.session.commit()

    def _to_auth_user(self, user):
        return AuthUser(user.id, user.email, user.full_name, is_admin=self.is_admin(user.id))


class SupabaseAuthProvider(AuthProvider):
    """Supabase GoTrue，角色从 user_roles 表读取"""

    def __init__(self, client, store):
        self.client = client
        self.store = store

    def _call(self, method, path, **kwargs):
        try:
            return self.client.request(method, f'/auth/v1{path}', **kwargs).json()
        except SupabaseRequestError as e:
            if e.is_network_error or e.status_code >= 500:
                raise AuthUnavailable(e.message)
            raise AuthError(e.message, payload={'status': e.status_code})

    def _from_payload(self, payload, session=None):
        session = session or {}
        user = payload.get('user', payload)
        metadata = user.get('user_metadata') or {}
        return AuthUser(
            user['id'],
            user.get('email'),
            metadata.get('full_name'),
            is_admin=self.is_admin(user['id'], session.get('access_token')),
            access_token=session.get('access_token'),
            refresh_token=session.get('refresh_token'),
        )

    def sign_in(self, email, password):
        payload = self._call('POST', '/token', params={'grant_type': 'password'},
                             json={'email': email, 'password': password})
        logger.info(f'✅ 登录成功: {email}')
        return self._from_payload(payload, payload)

    def sign_up(self, email, password, full_name=None):
        payload = self._call('POST', '/signup', json={
            'email': email,
            'password': password,
            'data': {'full_name': full_name},
        })
        return self._from_payload(payload, payload)

    def sign_out(self, user):
        if not user.access_token:
            return
        try:
            self._call('POST', '/logout', access_token=user.access_token)
        except (AuthError, AuthUnavailable) as e:
            # 本地会话照常清除，远端令牌会自然过期
            logger.warning(f'⚠️ 远端退出失败: {e.message}')

    def get_user(self, user_id, session_data):
        access_token = session_data.get('access_token')
        if not access_token:
            return None
        try:
            payload = self._call('GET', '/user', access_token=access_token)
            return self._from_payload({'user': payload}, session_data)
        except AuthError:
            pass

        # 访问令牌过期，尝试刷新
        refresh_token = session_data.get('refresh_token')
        if not refresh_token:
            return None
        try:
            payload = self._call('POST', '/token', params={'grant_type': 'refresh_token'},
                                 json={'refresh_token': refresh_token})
        except AuthError:
            return None
        user = self._from_payload(payload, payload)
        return user if user.id == str(user_id) else None

    def is_admin(self, user_id, access_token=None):
        """user_roles 受行级安全保护，以该用户自己的令牌查询"""
        try:
            rows = self.store.query('user_roles', access_token=access_token) \
                .eq('user_id', user_id).eq('role', ADMIN_ROLE).all()
        except StoreError as e:
            raise AuthUnavailable(f'Role lookup failed: {e.message}')
        return bool(rows)
