import logging

from app.exceptions import NotFound, StorageError, ValidationError
from app.services.base import BaseAccessor
from app.utils.file_helper import allowed_file, build_upload_path

logger = logging.getLogger(__name__)


class MediaService(BaseAccessor):
    """
    媒体库访问器，缓存前缀 'media'
    文件本体在对象存储，记录在 media 表；两者的增删顺序保证不会留下指向已删除文件的记录
    """
    table = 'media'
    INVALIDATES = [('media',)]

    def __init__(self, queries, store, storage):
        super().__init__(queries, store)
        self.storage = storage

    def list(self):
        return self.fetch(('media',), lambda: self.store.query(self.table).order('created_at', desc=True).all())

    def upload(self, file, uploaded_by=None, **callbacks):
        """
        上传文件：先写对象存储，再插入记录
        插入失败时尽量清理刚上传的文件
        """
        def run():
            filename = getattr(file, 'filename', None)
            if not filename or not filename.strip():
                raise ValidationError('No file selected')
            if not allowed_file(filename):
                raise ValidationError(f'File type not allowed: {filename}')

            payload = file.read()
            content_type = getattr(file, 'mimetype', None) or 'application/octet-stream'
            path = build_upload_path(filename)
            url = self.storage.upload(path, payload, content_type=content_type)

            try:
                return self.store.insert(self.table, {
                    'name': filename,
                    'file_path': path,
                    'file_url': url,
                    'file_type': content_type,
                    'file_size': len(payload),
                    'uploaded_by': uploaded_by,
                })
            except Exception:
                try:
                    self.storage.remove(path)
                except StorageError as e:
                    logger.error(f'❌ 清理孤立文件失败 {path}: {e.message}')
                raise

        return self.mutate(run, self.INVALIDATES, **callbacks)

    def delete(self, item, **callbacks):
        """先删除对象存储中的文件，成功后才删除记录"""
        def run():
            if not item:
                raise NotFound('Media item not found')
            self.storage.remove(item['file_path'])
            self.store.delete(self.table, item['id'])
            return item

        return self.mutate(run, self.INVALIDATES, **callbacks)

    def find(self, media_id):
        """在缓存的媒体列表中查找单条记录，返回 (item, QueryResult)；读取失败时 item 为 None"""
        result = self.list()
        if result.error is not None:
            return None, result
        for item in result.data or []:
            if item['id'] == media_id:
                return item, result
        return None, result

    def update_alt(self, media_id, alt_text, **callbacks):
        def run():
            row = self.store.update(self.table, media_id, {'alt_text': (alt_text or '').strip() or None})
            if row is None:
                raise NotFound('Media item not found')
            return row

        return self.mutate(run, self.INVALIDATES, **callbacks)
