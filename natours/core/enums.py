"""
枚举定义
"""

from enum import Enum


class Methods(str, Enum):
    """路由支持的 HTTP 方法，ALL 表示匹配所有方法"""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    ALL = "all"


# ALL 展开后的 HTTP 方法
ALL_HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


class MetadataKeys(str, Enum):
    """路由装饰器写入元数据时使用的键"""

    METHOD = "method"
    PATH = "path"
    VALIDATOR = "validator"
    MIDDLEWARE = "middleware"
    ASYNC_MIDDLEWARE = "async_middleware"
    AUTHORIZE = "authorize"
    ASYNC = "async"


class TypeStrings(str, Enum):
    """请求体字段校验支持的类型"""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
