"""
表单验证器
"""
from wtforms.validators import ValidationError
import re

SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')

def validate_slug(form, field):
    """验证 slug 格式 (小写字母、数字、连字符)"""
    if field.data and not SLUG_PATTERN.match(field.data.strip()):
        raise ValidationError('Slug may contain only lowercase letters, digits and single hyphens')

def validate_link(form, field):
    """验证链接：站内路径或 http(s) 地址"""
    if field.data:
        value = field.data.strip()
        if not (value.startswith('/') or re.match(r'^https?://', value)):
            raise ValidationError('Enter a site path starting with "/" or a full http(s) URL')
