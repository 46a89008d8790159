import uuid
from datetime import datetime
from app.extensions import db


def generate_uuid():
    return str(uuid.uuid4())


class BaseModel(db.Model):
    """
    模型基类 (sql 存储后端使用)
    包含：UUID 主键, 创建时间, 更新时间, 序列化方法
    """
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        """
        通用序列化方法：将模型转换为与远程 REST 接口一致的字典。
        时间字段输出 ISO 字符串，过滤掉以 '_' 开头的私有属性。
        """
        data = {}
        for c in self.__table__.columns:
            if c.name.startswith('_'):
                continue
            val = getattr(self, c.name)
            if isinstance(val, datetime):
                data[c.name] = val.isoformat()
            else:
                data[c.name] = val
        return data
