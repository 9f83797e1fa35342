"""
兜底路由

匹配所有未被其他路由处理的请求，必须在其他控制器之后导入
"""

from fastapi import Request

from ..core.decorators import all_, async_handler, controller
from ..web.exceptions import AppError


@controller("/")
class ErrorController:

    @all_("{path:path}")
    @async_handler
    async def handle_404(self, request: Request):
        """未匹配的路径和方法"""
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        raise AppError(f"path {url} does not accept {request.method} requests", 404)
