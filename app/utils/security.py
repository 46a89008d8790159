"""
安全工具函数
"""
import uuid
from urllib.parse import urlsplit
from flask import request, abort, current_app
from functools import wraps
from datetime import datetime, timedelta

from app.extensions import cache

# 速率限制存储（生产环境应使用 Redis）
_rate_limit_storage = {}

def rate_limit(max_requests=60, window=60):
    """
    速率限制装饰器 (只统计 POST)

    Args:
        max_requests: 时间窗口内最大请求数
        window: 时间窗口（秒）
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if request.method != 'POST' or current_app.testing:
                return func(*args, **kwargs)

            # 获取客户端标识（IP地址）
            key = f"{func.__name__}:{request.remote_addr}"
            now = datetime.now()

            # 清理过期记录
            _rate_limit_storage[key] = [
                timestamp for timestamp in _rate_limit_storage.get(key, [])
                if now - timestamp < timedelta(seconds=window)
            ]

            # 检查是否超限
            if len(_rate_limit_storage[key]) >= max_requests:
                abort(429, description='Too many requests, please try again later.')

            # 记录本次请求
            _rate_limit_storage[key].append(now)

            return func(*args, **kwargs)
        return wrapper
    return decorator


def safe_next_url(next_url, default):
    """只接受本站相对路径，防止开放重定向"""
    if not next_url:
        return default
    parts = urlsplit(next_url)
    if parts.netloc or parts.scheme or not next_url.startswith('/') or next_url.startswith('//'):
        return default
    return next_url


def issue_submission_token():
    """为新建表单生成一次性提交令牌"""
    return uuid.uuid4().hex


def claim_submission_token(token):
    """
    占用提交令牌，成功返回 True
    同一令牌第二次提交 (双击、刷新重发) 返回 False
    空令牌不做去重
    """
    if not token:
        return True
    timeout = current_app.config.get('SUBMISSION_TOKEN_TIMEOUT', 600)
    return bool(cache.add(f'submission:{token}', 1, timeout=timeout))


def release_submission_token(token):
    """写操作失败时释放令牌，允许修正后重新提交"""
    if token:
        cache.delete(f'submission:{token}')
