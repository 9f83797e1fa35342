"""
Natours 异常模块

提供框架层面（配置、路由注册、依赖注入等）的异常类
"""

from typing import Any, Dict, Optional


class NatoursException(Exception):
    """Natours 框架异常基类"""

    def __init__(
        self,
        message: str = "Natours 框架错误",
        code: str = "NATOURS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(NatoursException):
    """配置错误异常"""

    def __init__(
        self,
        message: str = "配置错误",
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.config_key = config_key
        super().__init__(message, "CONFIGURATION_ERROR", details)


class InitializationError(NatoursException):
    """初始化错误异常"""

    def __init__(
        self,
        message: str = "初始化失败",
        component: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.component = component
        super().__init__(message, "INITIALIZATION_ERROR", details)


class DependencyError(NatoursException):
    """依赖错误异常"""

    def __init__(
        self,
        message: str = "依赖错误",
        dependency: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.dependency = dependency
        super().__init__(message, "DEPENDENCY_ERROR", details)


class RouteError(NatoursException):
    """路由错误异常"""

    def __init__(
        self,
        message: str = "路由错误",
        route: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.route = route
        super().__init__(message, "ROUTE_ERROR", details)
