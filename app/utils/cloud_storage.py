"""
对象存储工具模块
媒体文件的上传与删除，支持本地文件系统、Cloudinary 和 Supabase Storage。
上传/删除失败一律抛出 StorageError，由调用方决定是否继续。
"""
import logging
import os

from werkzeug.utils import safe_join

from app.exceptions import StorageError
from app.utils.file_helper import get_file_extension
from app.utils.supabase_client import SupabaseClient, SupabaseRequestError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'svg'}
VIDEO_EXTENSIONS = {'mp4', 'mov', 'mp3'}


def _read_bytes(file):
    """FileStorage / 文件对象 / bytes -> bytes"""
    if isinstance(file, (bytes, bytearray)):
        return bytes(file)
    stream = getattr(file, 'stream', file)
    return stream.read()


class MediaStorage:
    """对象存储接口"""

    def upload(self, path, file, content_type=None):
        """上传文件，返回公开访问 URL"""
        raise NotImplementedError

    def remove(self, path):
        raise NotImplementedError


class LocalStorage(MediaStorage):
    """本地文件系统 (开发环境)，文件通过 /uploads/<path> 访问"""

    def __init__(self, folder, base_url='/uploads/'):
        self.folder = folder
        self.base_url = base_url

    def _full_path(self, path):
        full_path = safe_join(self.folder, path)
        if full_path is None:
            raise StorageError(f'Invalid object path: {path}')
        return full_path

    def upload(self, path, file, content_type=None):
        full_path = self._full_path(path)
        try:
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
            with open(full_path, 'wb') as fh:
                fh.write(_read_bytes(file))
        except OSError as e:
            logger.error(f'❌ 本地保存失败 {path}: {e}')
            raise StorageError(f'Upload failed: {e}')
        logger.info(f'✅ 文件已保存: {path}')
        return f'{self.base_url}{path}'

    def remove(self, path):
        full_path = self._full_path(path)
        if not os.path.exists(full_path):
            logger.warning(f'⚠️ 文件不存在，视为已删除: {path}')
            return
        try:
            os.remove(full_path)
        except OSError as e:
            logger.error(f'❌ 删除本地文件失败 {path}: {e}')
            raise StorageError(f'Delete failed: {e}')
        logger.info(f'✅ 文件已删除: {path}')


class CloudinaryStorage(MediaStorage):
    """Cloudinary 云存储 (生产环境，本地文件系统不持久化时使用)"""

    def __init__(self, config, folder='editorial'):
        import cloudinary

        cloudinary_url = config.get('CLOUDINARY_URL')
        if cloudinary_url:
            # 使用 URL 配置
            cloudinary.config(cloudinary_url=cloudinary_url)
        else:
            # 使用分离的配置
            cloudinary.config(
                cloud_name=config.get('CLOUDINARY_CLOUD_NAME'),
                api_key=config.get('CLOUDINARY_API_KEY'),
                api_secret=config.get('CLOUDINARY_API_SECRET'),
                secure=True
            )
        self.folder = folder
        logger.info('✅ Cloudinary 云存储已配置')

    @staticmethod
    def resource_type(path):
        ext = get_file_extension(path)
        if ext in IMAGE_EXTENSIONS:
            return 'image'
        if ext in VIDEO_EXTENSIONS:
            return 'video'
        return 'raw'

    def public_id(self, path):
        # raw 资源的 public_id 需要保留扩展名
        if self.resource_type(path) == 'raw':
            return f'{self.folder}/{path}'
        return f'{self.folder}/{path.rsplit(".", 1)[0]}'

    def upload(self, path, file, content_type=None):
        import cloudinary.uploader

        try:
            result = cloudinary.uploader.upload(
                file,
                public_id=self.public_id(path),
                resource_type=self.resource_type(path),
                overwrite=True,
            )
        except Exception as e:
            logger.error(f'❌ 云存储上传失败: {e}')
            raise StorageError(f'Upload failed: {e}')
        logger.info(f'✅ 文件上传到云存储: {result.get("secure_url")}')
        return result.get('secure_url')

    def remove(self, path):
        import cloudinary.uploader

        try:
            result = cloudinary.uploader.destroy(self.public_id(path), resource_type=self.resource_type(path))
        except Exception as e:
            logger.error(f'❌ 删除云存储文件失败: {e}')
            raise StorageError(f'Delete failed: {e}')
        if result.get('result') not in ('ok', 'not found'):
            raise StorageError(f'Delete failed: {result.get("result")}')
        logger.info(f'✅ 云存储文件已删除: {path}')


class SupabaseStorage(MediaStorage):
    """Supabase Storage bucket"""

    def __init__(self, client, bucket='media'):
        self.client = client
        self.bucket = bucket

    def public_url(self, path):
        return f'{self.client.url}/storage/v1/object/public/{self.bucket}/{path}'

    def upload(self, path, file, content_type=None):
        try:
            self.client.request(
                'POST', f'/storage/v1/object/{self.bucket}/{path}',
                content=_read_bytes(file),
                headers={'Content-Type': content_type or 'application/octet-stream'},
            )
        except SupabaseRequestError as e:
            logger.error(f'❌ Storage 上传失败: {e.message}')
            raise StorageError(e.message)
        logger.info(f'✅ 文件上传到 Storage: {path}')
        return self.public_url(path)

    def remove(self, path):
        try:
            self.client.request('DELETE', f'/storage/v1/object/{self.bucket}', json={'prefixes': [path]})
        except SupabaseRequestError as e:
            logger.error(f'❌ Storage 删除失败: {e.message}')
            raise StorageError(e.message)
        logger.info(f'✅ Storage 文件已删除: {path}')


def create_storage(config, client=None):
    """根据 STORAGE_BACKEND 创建存储实例"""
    backend = config.get('STORAGE_BACKEND', 'local')
    if backend == 'cloudinary':
        return CloudinaryStorage(config)
    if backend == 'supabase':
        client = client or SupabaseClient.from_config(config)
        return SupabaseStorage(client, bucket=config.get('MEDIA_BUCKET', 'media'))
    logger.info('ℹ️ 未配置云存储，使用本地文件系统')
    return LocalStorage(config['UPLOAD_FOLDER'])
