"""
全局异常处理

把处理链中抛出的异常统一转换为 {"status": ..., "message": ...} 响应：

- AppError: 使用异常携带的状态码和消息
- ModelValidationError / 非空约束: 406
- 唯一约束冲突: 409
- 其他异常: 500，生产环境只返回 "Something went wrong!"

非生产环境下响应中附带 error 字段，包含异常类型和详细信息
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger as loguru_logger
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.config import get_config_str
from ..exceptions import NatoursException
from ..utils.common import snake_to_camel
from .exceptions import AppError, ModelValidationError
from .response import ResponseWrapper

logger = loguru_logger.bind(name="errors")

GENERIC_MESSAGE = "Something went wrong!"

_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: ([\w., ]+)")
_PG_UNIQUE = re.compile(r"Key \((.+?)\)=\((.+?)\) already exists")
_SQLITE_NOT_NULL = re.compile(r"NOT NULL constraint failed: \w+\.(\w+)")
_PG_NOT_NULL = re.compile(r'null value in column "(\w+)"')


def is_production() -> bool:
    """当前是否为生产环境"""
    return get_config_str("app.env", "development").lower() == "production"


def _error_payload(exc: Exception) -> Dict[str, Any]:
    return {"type": exc.__class__.__name__, "detail": str(exc)}


def error_response(exc: Exception, status_code: int, message: str, status: Optional[str] = None) -> JSONResponse:
    """
    构建错误响应

    Args:
        exc: 原始异常
        status_code: HTTP 状态码
        message: 错误消息
        status: 响应中的 status 字段，默认 4xx 为 failed，5xx 为 error
    """
    if status is None:
        status = "failed" if status_code < 500 else "error"
    extra = {} if is_production() else {"error": _error_payload(exc)}
    return ResponseWrapper.failed(message, status_code=status_code, status=status, **extra)


def _body_value(request: Request, column: str) -> Optional[str]:
    body = getattr(request.state, "body", None)
    if isinstance(body, dict):
        for key in (snake_to_camel(column), column):
            if key in body:
                return str(body[key])
    return None


def parse_integrity_error(request: Request, exc: IntegrityError) -> Tuple[int, str]:
    """
    解析数据库约束错误

    Returns:
        (状态码, 消息)
    """
    text = str(exc.orig)

    keys: List[str] = []
    values: List[str] = []
    match = _PG_UNIQUE.search(text)
    if match:
        keys = [key.strip() for key in match.group(1).split(",")]
        values = [value.strip() for value in match.group(2).split(",")]
    else:
        match = _SQLITE_UNIQUE.search(text)
        if match:
            keys = [column.strip().split(".")[-1] for column in match.group(1).split(",")]
            values = [value for value in (_body_value(request, key) for key in keys) if value is not None]

    if keys:
        key = ", ".join(snake_to_camel(k) for k in keys)
        value = ", ".join(values) if values else "provided"
        return 409, f"Duplicate Key - another object with value '{value}' as it's {key} field already exists!"

    match = _PG_NOT_NULL.search(text) or _SQLITE_NOT_NULL.search(text)
    if match:
        return 406, f"{snake_to_camel(match.group(1))} is required"

    if "FOREIGN KEY" in text.upper():
        return 400, "Referenced object does not exist"

    return 500, GENERIC_MESSAGE


def register_exception_handlers(app: FastAPI) -> None:
    """注册异常处理器"""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        """业务异常处理器"""
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")
        return error_response(exc, exc.status_code, exc.message, exc.status)

    @app.exception_handler(ModelValidationError)
    async def model_validation_handler(request: Request, exc: ModelValidationError):
        """模型字段校验异常处理器"""
        logger.warning(f"模型字段校验失败: {exc.field} - {exc.message}")
        return error_response(exc, 406, exc.message)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """数据库约束异常处理器"""
        status_code, message = parse_integrity_error(request, exc)
        if status_code >= 500:
            logger.opt(exception=exc).error(f"未识别的数据库约束错误: {exc.orig}")
            message = GENERIC_MESSAGE if is_production() else str(exc.orig)
        else:
            logger.warning(f"数据库约束错误: {exc.orig}")
        return error_response(exc, status_code, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """HTTP 异常处理器"""
        logger.warning(f"HTTP 异常: {exc.status_code} - {exc.detail}")
        return error_response(exc, exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """请求验证异常处理器"""
        logger.warning(f"请求验证失败: {exc.errors()}")
        return error_response(exc, 400, "Invalid request")

    @app.exception_handler(NatoursException)
    async def natours_exception_handler(request: Request, exc: NatoursException):
        """框架异常处理器"""
        logger.opt(exception=exc).error(f"Natours 异常: {exc.message}")
        message = GENERIC_MESSAGE if is_production() else exc.message
        return error_response(exc, 500, message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """全局异常处理器"""
        logger.opt(exception=exc).error(f"未处理的异常: {exc!r}")
        message = GENERIC_MESSAGE if is_production() else str(exc) or exc.__class__.__name__
        return error_response(exc, 500, message)
