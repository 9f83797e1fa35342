"""
用户路由
"""

from fastapi import Request

from ..core.application import get_service
from ..core.decorators import controller, delete, get, patch, use, use_async
from ..models import UserTypes
from ..web.response import ResponseWrapper
from .middlewares import filter_request_body, login_required


@controller("/api/v1/users")
class UserController:
    """用户"""

    @get("/")
    @use_async(login_required(UserTypes.ADMIN))
    async def get_all_users(self, request: Request):
        users = await get_service("user_service").list(request.state.db)
        return ResponseWrapper.success(users, count=len(users))

    @get("/account")
    @use_async(login_required())
    def get_account(self, request: Request):
        """当前用户信息"""
        return ResponseWrapper.success(request.state.user.to_dict())

    @patch("/update-user")
    @use_async(login_required())
    @use(filter_request_body("name", "username", "email"))
    async def update_user(self, request: Request):
        """修改当前用户的 name/username/email"""
        user = await get_service("user_service").update_user(
            request.state.db, request.state.user.id, request.state.body
        )
        return ResponseWrapper.success(user.to_dict(), message="User updated successfully")

    @delete("/delete-account")
    @use_async(login_required())
    async def delete_account(self, request: Request):
        await get_service("user_service").deactivate(request.state.db, request.state.user)
