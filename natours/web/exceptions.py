"""
Web 异常模块

提供请求处理过程中抛出的 HTTP 异常类，由全局异常处理器统一转换为
{"status": ..., "message": ...} 格式的响应
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """
    业务（可预期）错误

    Attributes:
        status_code: HTTP 状态码
        status: 响应中的 status 字段（"failed" 或 "error"）
        is_operational: 是否为可预期错误，生产环境下只有可预期错误会原样返回消息
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        status: str = "error",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.status = status
        self.details = details or {}
        self.is_operational = True
        super().__init__(self.message)


class BadRequestError(AppError):
    """400 错误请求异常"""

    def __init__(self, message: str = "Invalid request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 400, "failed", details)


class UnauthorizedError(AppError):
    """401 未授权异常"""

    def __init__(self, message: str = "You are not logged in", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 401, "failed", details)


class ForbiddenError(AppError):
    """403 禁止访问异常"""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, 403, "failed", details)


class NotFoundError(AppError):
    """404 未找到异常"""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 404, "failed", details)


class NotAcceptableError(AppError):
    """406 字段内容不可接受"""

    def __init__(self, message: str = "Not acceptable", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 406, "failed", details)


class ConflictError(AppError):
    """409 冲突异常"""

    def __init__(self, message: str = "Conflict", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 409, "failed", details)


class InternalServerError(AppError):
    """500 内部服务器错误异常"""

    def __init__(self, message: str = "Something went wrong!", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 500, "error", details)


class ModelValidationError(Exception):
    """
    模型字段校验错误

    由模型层的 @validates 规则和生命周期钩子抛出，响应为 406
    """

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(self.message)
