from datetime import datetime, timedelta
from werkzeug.security import generate_password_hash, check_password_hash
from app.extensions import db
from .base import BaseModel

# 连续失败多少次后锁定
MAX_FAILED_ATTEMPTS = 5
LOCK_MINUTES = 30


class UserRole(BaseModel):
    """用户角色 (admin / user)，与认证服务中的 user_roles 表一致"""
    __tablename__ = 'user_roles'
    __table_args__ = (db.UniqueConstraint('user_id', 'role', name='uq_user_role'),)

    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False, default='user')

    def __repr__(self):
        return f'<UserRole {self.user_id}:{self.role}>'


class User(BaseModel):
    """本地认证用户 (AUTH_BACKEND=sql)"""
    __tablename__ = 'users'

    email = db.Column(db.String(128), unique=True, index=True, nullable=False)
    full_name = db.Column(db.String(128))
    password_hash = db.Column(db.String(256))

    is_active_user = db.Column(db.Boolean, default=True)  # 封号开关
    last_login = db.Column(db.DateTime)

    # 安全字段
    failed_login_attempts = db.Column(db.Integer, default=0)
    locked_until = db.Column(db.DateTime, nullable=True)

    roles = db.relationship('UserRole', backref='user', lazy='dynamic', cascade='all, delete-orphan')

    @property
    def password(self):
        raise AttributeError('密码不可读')

    @password.setter
    def password(self, password):
        self.password_hash = generate_password_hash(password)

    def verify_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    def is_locked(self):
        """检查账号是否被锁定"""
        return bool(self.locked_until and datetime.utcnow() < self.locked_until)

    def record_failed_login(self):
        """记录登录失败"""
        self.failed_login_attempts = (self.failed_login_attempts or 0) + 1
        if self.failed_login_attempts >= MAX_FAILED_ATTEMPTS:
            self.locked_until = datetime.utcnow() + timedelta(minutes=LOCK_MINUTES)
        db.session.commit()

    def reset_failed_attempts(self):
        """重置失败次数"""
        self.failed_login_attempts = 0
        self.locked_until = None
        self.last_login = datetime.utcnow()
        db.session.commit()

    def has_role(self, role):
        return self.roles.filter_by(role=role).first() is not None

    def __repr__(self):
        return f'<User {self.email}>'
