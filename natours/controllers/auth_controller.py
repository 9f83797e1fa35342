"""
认证路由
"""

from fastapi import Request

from ..core.application import get_service
from ..core.decorators import controller, patch, post, use_async, validate_body
from ..core.enums import TypeStrings
from ..web.response import ResponseWrapper
from ..web.validation import BodyRule, is_email, min_length
from .middlewares import login_required

PASSWORD_RULES = (
    BodyRule("password", TypeStrings.STRING, (min_length(8),)),
    BodyRule("confirmPassword", TypeStrings.STRING),
)


@controller("/api/v1/auth")
class AuthController:
    """注册、登录与密码管理"""

    @post("/register")
    @validate_body(
        {"name": "username", "type": TypeStrings.STRING},
        {"name": "name", "type": TypeStrings.STRING},
        {"name": "email", "type": TypeStrings.STRING, "validators": [is_email]},
        *PASSWORD_RULES,
    )
    async def register_user(self, request: Request):
        user, token = await get_service("auth_service").register(request.state.db, request.state.body)
        return ResponseWrapper.created(user.to_dict(), token=token)

    @post("/login")
    @validate_body(
        {"name": "email", "type": TypeStrings.STRING},
        {"name": "password", "type": TypeStrings.STRING},
    )
    async def login_user(self, request: Request):
        body = request.state.body
        token = await get_service("auth_service").login(request.state.db, body["email"], body["password"])
        return ResponseWrapper.success(status_code=202, token=token)

    @post("/forgot-password")
    @validate_body({"name": "email", "type": TypeStrings.STRING, "validators": [is_email]})
    async def forgot_password(self, request: Request):
        """发送密码重置邮件"""
        await get_service("auth_service").forgot_password(request.state.db, request.state.body["email"])
        return ResponseWrapper.success(message="Token sent to email!")

    @patch("/reset-password")
    @validate_body(*PASSWORD_RULES)
    async def reset_password(self, request: Request):
        """使用邮件中的 ?reset=<token> 设置新密码"""
        token = await get_service("auth_service").reset_password(
            request.state.db, request.state.query.get("reset"), request.state.body
        )
        return ResponseWrapper.success(token=token)

    @patch("/update-password")
    @use_async(login_required())
    @validate_body({"name": "currentPassword", "type": TypeStrings.STRING}, *PASSWORD_RULES)
    async def update_password(self, request: Request):
        token = await get_service("auth_service").update_password(
            request.state.db, request.state.user, request.state.body
        )
        return ResponseWrapper.success(token=token)
