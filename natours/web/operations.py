"""
列表查询辅助

根据查询参数为模型的 select 语句追加过滤、排序、字段选择和分页：

    ?difficulty=easy&price[lte]=500&sort=-ratingsAverage,price&fields=name,price&page=2&limit=10
"""

import re
from typing import Any, Dict, List, Optional, Type

from loguru import logger as loguru_logger
from sqlalchemy import Boolean, DateTime, Float, Integer, Numeric, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only

from ..models.base import BaseModel
from ..utils.common import camel_to_snake, parse_datetime, snake_to_camel
from .exceptions import BadRequestError

logger = loguru_logger.bind(name="operations")

_FILTER_KEY = re.compile(r"^(\w+)\[(gte|gt|lte|lt|ne)\]$")

DEFAULT_SORT = "-createdAt"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100


class APIOperations:
    """
    列表查询构建器

    Args:
        model: 查询的模型类
        query: 查询参数字典
        statement: 初始 select 语句，默认为 select(model)
    """

    EXCLUDED_FIELDS = ("page", "sort", "limit", "fields")

    OPERATORS = {
        "gte": lambda column, value: column >= value,
        "gt": lambda column, value: column > value,
        "lte": lambda column, value: column <= value,
        "lt": lambda column, value: column < value,
        "ne": lambda column, value: column != value,
    }

    def __init__(self, model: Type[BaseModel], query: Optional[Dict[str, Any]] = None, statement=None):
        self.model = model
        self.query = dict(query or {})
        self.statement = statement if statement is not None else select(model)
        self.fields: Optional[List[str]] = None

    def _attribute(self, field: str):
        """按驼峰或下划线字段名查找可查询的模型属性，隐藏列与未知字段返回 None"""
        name = camel_to_snake(field)
        if name not in self.model.column_names() or name in self.model.HIDDEN_FIELDS:
            return None
        return getattr(self.model, name)

    @staticmethod
    def _coerce(attribute, field: str, raw: Any) -> Any:
        """把查询参数字符串转换为列的类型"""
        column_type = attribute.property.columns[0].type
        try:
            if isinstance(column_type, Boolean):
                lowered = str(raw).lower()
                if lowered not in ("true", "false", "1", "0"):
                    raise ValueError(raw)
                return lowered in ("true", "1")
            if isinstance(column_type, Integer):
                return int(raw)
            if isinstance(column_type, (Float, Numeric)):
                return float(raw)
            if isinstance(column_type, DateTime):
                parsed = parse_datetime(raw)
                if parsed is None:
                    raise ValueError(raw)
                return parsed
        except ValueError:
            raise BadRequestError(f"Invalid value {raw} for the field {field}")
        return raw

    def filter(self) -> "APIOperations":
        """等值过滤以及 field[gte|gt|lte|lt|ne]=value 比较过滤"""
        for key, raw in self.query.items():
            if key in self.EXCLUDED_FIELDS:
                continue

            match = _FILTER_KEY.match(key)
            field, operator = (match.group(1), match.group(2)) if match else (key, None)

            attribute = self._attribute(field)
            if attribute is None:
                logger.debug(f"忽略未知的过滤字段: {key}")
                continue

            value = self._coerce(attribute, field, raw)
            if operator is None:
                self.statement = self.statement.where(attribute == value)
            else:
                self.statement = self.statement.where(self.OPERATORS[operator](attribute, value))
        return self

    def sort(self) -> "APIOperations":
        """按逗号分隔的字段排序，前缀 - 表示降序"""
        sort_by = self.query.get("sort") or DEFAULT_SORT
        for field in str(sort_by).split(","):
            field = field.strip()
            descending = field.startswith("-")
            attribute = self._attribute(field.lstrip("-"))
            if attribute is None:
                continue
            self.statement = self.statement.order_by(attribute.desc() if descending else attribute.asc())
        return self

    def limit_fields(self) -> "APIOperations":
        """只加载 fields 中列出的字段，id 总是保留"""
        fields = self.query.get("fields")
        if not fields:
            return self

        attributes = {"id": self.model.id}
        for field in str(fields).split(","):
            attribute = self._attribute(field.strip())
            if attribute is not None:
                attributes[attribute.key] = attribute

        self.fields = [snake_to_camel(name) for name in attributes]
        self.statement = self.statement.options(load_only(*attributes.values()))
        return self

    def paginate(self) -> "APIOperations":
        """分页，page 默认 1，limit 默认 100"""
        page = self._positive_int(self.query.get("page"), DEFAULT_PAGE)
        limit = self._positive_int(self.query.get("limit"), DEFAULT_LIMIT)
        self.statement = self.statement.offset((page - 1) * limit).limit(limit)
        return self

    @staticmethod
    def _positive_int(raw: Any, default: int) -> int:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            return default
        return value if value > 0 else default

    async def all(self, session: AsyncSession) -> List[Dict[str, Any]]:
        """执行查询并序列化结果"""
        result = await session.execute(self.statement)
        return [item.to_dict(self.fields) for item in result.scalars().all()]
