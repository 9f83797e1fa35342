"""
Web 中间件模块

提供应用级的 HTTP 中间件：访问日志、按请求管理数据库会话
"""

import time
from typing import Optional

from fastapi import Request, Response
from loguru import logger as loguru_logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ..core.database import Database, get_database

logger = loguru_logger.bind(name="access")


class Middleware:
    """中间件配置，保存中间件类及其参数，由 Application 按顺序安装"""

    def __init__(self, middleware_class: type, **kwargs):
        """
        Args:
            middleware_class: 中间件类
            **kwargs: 中间件参数
        """
        self.middleware_class = middleware_class
        self.kwargs = kwargs


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """访问日志中间件，记录 METHOD path status duration"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration = (time.perf_counter() - start) * 1000
            logger.error(f"{request.method} {request.url.path} 500 {duration:.2f}ms")
            raise

        duration = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {duration:.2f}ms")
        return response


class DatabaseSessionMiddleware(BaseHTTPMiddleware):
    """
    数据库会话中间件

    为每个请求创建独立会话并放到 request.state.db，
    响应状态码小于 400 时提交，否则回滚
    """

    def __init__(self, app, database: Optional[Database] = None):
        super().__init__(app)
        self._database = database

    @property
    def database(self) -> Database:
        return self._database or get_database()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        async with self.database.session_factory() as session:
            request.state.db = session
            try:
                response = await call_next(request)
            except Exception:
                await session.rollback()
                raise

            if response.status_code < 400:
                await session.commit()
            else:
                await session.rollback()
            return response
