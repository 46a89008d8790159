"""
视图渲染辅助：读取失败的错误状态、日期格式化
"""
from datetime import datetime
from flask import render_template, request


def fetch_error(result, title='Something went wrong', retry_url=None):
    """读取失败时在原位置显示错误状态 (不自动重试，提供手动重试链接)
    retry_url: 默认重试当前地址，POST 视图应指向可 GET 的页面
    """
    return render_template(
        'errors/fetch_error.html',
        title=title,
        message=result.error_message,
        retry_url=retry_url or request.full_path.rstrip('?'),
    ), 503


def parse_timestamp(value):
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None


def format_date(value, fmt='%B %d, %Y'):
    """ISO 字符串 / datetime -> 'January 05, 2024'"""
    moment = parse_timestamp(value)
    return moment.strftime(fmt) if moment else ''


def article_date(article):
    """文章显示日期：优先发布时间"""
    return format_date(article.get('published_at') or article.get('created_at'))
