"""
SQLAlchemy 存储后端
把远程存储接口映射到本地模型，返回与 REST 接口一致的字典行
"""
import logging
from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.extensions import db
from app.exceptions import StoreError
from app.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)


class SqlStore(RemoteStore):

    def __init__(self, tables=None):
        if tables is None:
            from app.models import TABLES
            tables = TABLES
        self.models = tables

    def _model(self, table):
        self._check_table(table)
        return self.models[table]

    def _column(self, model, table, name):
        column = model.__table__.columns.get(name)
        if column is None:
            raise StoreError(f"Could not find the '{name}' column of '{table}'", code=400)
        return column

    def _coerce(self, model, table, values):
        """校验列名，并把 ISO 字符串转换为 datetime"""
        data = {}
        for name, value in values.items():
            column = self._column(model, table, name)
            if isinstance(column.type, DateTime) and isinstance(value, str):
                value = datetime.fromisoformat(value.replace('Z', '+00:00')).replace(tzinfo=None)
            data[name] = value
        return data

    def execute(self, query):
        model = self._model(query.table)
        q = model.query
        for op, name, value in query.filters:
            column = self._column(model, query.table, name)
            if op == 'eq':
                q = q.filter(column.is_(None) if value is None else column == value)
            elif op == 'neq':
                q = q.filter(column != value)
            elif op == 'ilike':
                q = q.filter(column.ilike(value.replace('*', '%')))
            elif op == 'in':
                q = q.filter(column.in_(value))
        for name, desc in query.orders:
            column = self._column(model, query.table, name)
            q = q.order_by(column.desc() if desc else column.asc())
        if query.limit_count is not None:
            q = q.limit(query.limit_count)
        try:
            return [row.to_dict() for row in q.all()]
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(str(e))

    def insert(self, table, values):
        model = self._model(table)
        row = model(**self._coerce(model, table, values))
        db.session.add(row)
        self._commit(table)
        return row.to_dict()

    def update(self, table, record_id, values):
        model = self._model(table)
        row = db.session.get(model, record_id)
        if row is None:
            return None
        for name, value in self._coerce(model, table, values).items():
            setattr(row, name, value)
        self._commit(table)
        return row.to_dict()

    def delete(self, table, record_id):
        model = self._model(table)
        row = db.session.get(model, record_id)
        if row is not None:
            db.session.delete(row)
            self._commit(table)

    def _commit(self, table):
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            logger.warning(f'约束冲突 {table}: {e.orig}')
            if 'UNIQUE' in str(e.orig).upper():
                raise StoreError(f'duplicate key value violates unique constraint on "{table}"', code=409)
            raise StoreError(str(e.orig), code=400)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(str(e))
