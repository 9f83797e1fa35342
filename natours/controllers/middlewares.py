"""
路由前置中间件

通过 @use / @use_async 挂到路由方法上，接收 request，
返回 None 继续执行处理链，抛出 AppError 终止处理链
"""

from typing import Type

from fastapi import Request

from ..core.application import get_service
from ..models import BaseModel
from ..web.exceptions import AppError, ForbiddenError


def login_required(*roles):
    """
    要求请求携带有效的 Bearer 令牌，当前用户保存到 request.state.user

    Args:
        *roles: 允许访问的角色，为空表示所有已登录用户
    """
    allowed = [getattr(role, "value", role) for role in roles]

    async def check_login(request: Request) -> None:
        user = await get_service("auth_service").authenticate(
            request.state.db, request.headers.get("authorization")
        )
        if allowed and user.role not in allowed:
            raise ForbiddenError()
        request.state.user = user

    return check_login


def validate_id(model: Type[BaseModel]):
    """路径参数 id 必须对应一条已存在的记录"""

    async def check_id(request: Request) -> None:
        object_id = request.path_params.get("id")
        if not object_id:
            raise AppError("Invalid request. you must have a id parameter", 404)
        if await request.state.db.get(model, object_id) is None:
            raise AppError(f"Invalid tour id. {object_id} does not associate with any existing tours", 404)

    return check_id


def filter_request_body(*fields: str):
    """只保留请求体中列出的字段"""

    def filter_body(request: Request) -> None:
        body = request.state.body if isinstance(request.state.body, dict) else {}
        request.state.body = {key: value for key, value in body.items() if key in fields}

    return filter_body


def alias_top_tours(request: Request) -> None:
    """评分最高且价格最低的 5 条线路"""
    request.state.query["limit"] = "5"
    request.state.query["sort"] = "-ratingsAverage,price"
