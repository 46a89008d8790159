import random
import string
import time

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'svg', 'pdf', 'doc', 'docx', 'mp4', 'mp3', 'mov'}

def allowed_file(filename):
    """检查文件扩展名是否允许"""
    ext = get_file_extension(filename)
    return ext is not None and ext in ALLOWED_EXTENSIONS

def get_file_extension(filename):
    """从文件名获取扩展名"""
    if not filename or '.' not in filename:
        return None
    return filename.rsplit('.', 1)[1].lower()

def build_upload_path(filename):
    """
    生成对象存储路径: uploads/<毫秒时间戳>-<随机串>.<ext>
    原始文件名只保存在记录的 name 字段中
    """
    ext = get_file_extension(filename)
    token = ''.join(random.choices(string.ascii_lowercase + string.digits, k=10))
    return f"uploads/{int(time.time() * 1000)}-{token}.{ext}"

def format_size(size):
    """将字节转换为易读格式 (KB, MB)"""
    if not size:
        return '0 B'
    power = 2**10
    n = 0
    power_labels = {0 : '', 1: 'K', 2: 'M', 3: 'G', 4: 'T'}
    while size > power and n < 4:
        size /= power
        n += 1
    return f"{size:.1f} {power_labels[n]}B"

def get_file_icon(mimetype):
    """根据类型返回图标类名和颜色 (icon_class, color)"""
    mimetype = mimetype or ''
    if 'image' in mimetype:
        return ('fas fa-file-image', '#10b981')
    if 'pdf' in mimetype:
        return ('fas fa-file-pdf', '#ef4444')
    if 'word' in mimetype or 'document' in mimetype:
        return ('fas fa-file-word', '#6366f1')
    if 'video' in mimetype:
        return ('fas fa-file-video', '#a855f7')
    if 'audio' in mimetype:
        return ('fas fa-file-audio', '#ec4899')
    return ('fas fa-file', '#6b7280')
