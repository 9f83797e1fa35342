"""
模型基类

提供公共字段（id、created_at）以及请求体与模型之间的转换
JSON 使用驼峰命名，数据库列使用下划线命名
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base

from ..utils.common import camel_to_snake, generate_id, snake_to_camel, utcnow
from ..web.exceptions import ModelValidationError

Base = declarative_base()


def ensure_number(field: str, value: Any) -> Any:
    """校验数值类型，布尔值不视为数值"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ModelValidationError(field, f"{field} must be a number", value)
    return value


class BaseModel(Base):
    """模型基类"""

    __abstract__ = True

    # 序列化时忽略的列
    HIDDEN_FIELDS: Tuple[str, ...] = ()
    # 不对应数据库列、但允许从请求体赋值的属性
    TRANSIENT_FIELDS: Tuple[str, ...] = ()
    # 不允许从请求体赋值的列
    PROTECTED_FIELDS: Tuple[str, ...] = ("id", "created_at")

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    @classmethod
    def column_names(cls) -> Tuple[str, ...]:
        """所有列对应的属性名"""
        return tuple(column.key for column in cls.__table__.columns)

    @classmethod
    def writable_fields(cls) -> Tuple[str, ...]:
        """允许从请求体赋值的属性名"""
        return tuple(
            name for name in cls.column_names() if name not in cls.PROTECTED_FIELDS
        ) + cls.TRANSIENT_FIELDS

    @classmethod
    def _filter_body(cls, body: Dict[str, Any], fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        writable = set(cls.writable_fields())
        if fields is not None:
            writable &= {camel_to_snake(name) for name in fields}
        values = {}
        for key, value in (body or {}).items():
            name = camel_to_snake(key)
            if name in writable:
                values[name] = value
        return values

    @classmethod
    def from_body(cls, body: Dict[str, Any], fields: Optional[Iterable[str]] = None) -> "BaseModel":
        """
        根据请求体创建模型实例

        Args:
            body: 驼峰命名的请求体，未知字段被忽略
            fields: 只接受这些字段
        """
        return cls(**cls._filter_body(body, fields))

    def apply(self, body: Dict[str, Any], fields: Optional[Iterable[str]] = None) -> "BaseModel":
        """用请求体更新模型实例，未知字段被忽略"""
        for name, value in self._filter_body(body, fields).items():
            setattr(self, name, value)
        return self

    def to_dict(self, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """
        序列化为驼峰命名的字典

        Args:
            fields: 只输出这些字段（驼峰或下划线命名均可），未加载的列不能被访问
        """
        wanted = None
        if fields is not None:
            wanted = {camel_to_snake(name) for name in fields}
            wanted.add("id")

        result = {}
        for name in self.column_names():
            if name in self.HIDDEN_FIELDS:
                continue
            if wanted is not None and name not in wanted:
                continue
            result[snake_to_camel(name)] = getattr(self, name)
        return result

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.__dict__.get('id', 'N/A')})>"
