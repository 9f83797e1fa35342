"""
Web 模块

提供 Web 相关的功能，包括异常、响应格式、中间件、请求体校验等
"""

from .exceptions import (
    AppError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    NotAcceptableError,
    ConflictError,
    InternalServerError,
    ModelValidationError,
)
from .response import ResponseWrapper, response

__all__ = [
    "AppError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "NotAcceptableError",
    "ConflictError",
    "InternalServerError",
    "ModelValidationError",
    "ResponseWrapper",
    "response",
]
