"""
认证服务

注册、登录、令牌认证以及密码重置和修改
"""

from typing import Any, Dict, Tuple

from loguru import logger as loguru_logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.mailer import Mailer
from ..core.config import get_config_int
from ..core.decorators import service
from ..models import User
from ..utils.common import utcnow
from ..utils.security import hash_token
from ..web.exceptions import AppError, BadRequestError, InternalServerError, NotFoundError, UnauthorizedError
from .token_service import TokenService
from .user_service import UserService

logger = loguru_logger.bind(name="auth_service")


@service()
class AuthService:
    """认证服务"""

    def __init__(self, token_service: TokenService, user_service: UserService, mailer: Mailer):
        self.token_service = token_service
        self.user_service = user_service
        self.mailer = mailer

    async def register(self, session: AsyncSession, body: Dict[str, Any]) -> Tuple[User, str]:
        """
        注册新用户

        Returns:
            (新用户, 访问令牌)
        """
        user = await self.user_service.create(session, body)
        return user, self.token_service.sign(user.id)

    async def login(self, session: AsyncSession, email: str, password: str) -> str:
        """
        校验邮箱和密码，返回访问令牌

        Raises:
            AppError: 邮箱不存在或密码错误（401）
        """
        user = await self.user_service.find_by_email(session, email)
        if user is None or not user.check_password(password):
            raise AppError("Invalid Email or Password", 401)
        logger.info(f"用户登录: {user.username}")
        return self.token_service.sign(user.id)

    async def authenticate(self, session: AsyncSession, authorization: str) -> User:
        """
        根据 Authorization 请求头获取当前用户

        Raises:
            UnauthorizedError: 缺少请求头、令牌无效、用户不存在或令牌签发后修改过密码
        """
        if not authorization:
            raise UnauthorizedError("No Auth Headers")

        parts = authorization.split(" ")
        if parts[0] != "Bearer" or len(parts) < 2 or not parts[1] or parts[1] == "null":
            raise UnauthorizedError("Cannot find the access token in the request headers - authorization failed")

        payload = self.token_service.verify(parts[1])

        user = await self.user_service.find_by_id(session, payload["userId"])
        if user is None:
            raise UnauthorizedError("the user belonging the token does not exists")

        if user.changed_password_after(self.token_service.issued_at(payload)):
            raise UnauthorizedError("User has recently changed the password. Please login again!")

        return user

    async def forgot_password(self, session: AsyncSession, email: str) -> None:
        """
        生成密码重置令牌并发送重置邮件

        Raises:
            NotFoundError: 邮箱不存在
            InternalServerError: 邮件发送失败，已生成的令牌被清除
        """
        user = await self.user_service.find_by_email(session, email)
        if user is None:
            raise NotFoundError("There is no user with that email address")

        token = user.create_password_reset_token(get_config_int("security.reset_token_expires_minutes", 10))
        await session.flush()

        try:
            await self.mailer.send(self.mailer.password_reset_email(user.email, token))
        except Exception as e:
            logger.error(f"密码重置邮件发送失败: {e}")
            user.clear_password_reset_token()
            await session.flush()
            raise InternalServerError("There was an error sending the email. Try again later!")

    async def reset_password(self, session: AsyncSession, token: str, body: Dict[str, Any]) -> str:
        """
        使用重置令牌设置新密码，返回新的访问令牌

        Raises:
            BadRequestError: 令牌无效或已过期
        """
        if not token:
            raise BadRequestError("Token is invalid or has expired")

        result = await session.execute(
            select(User).where(
                User.password_reset_token == hash_token(token),
                User.password_reset_expires > utcnow(),
            )
        )
        user = result.scalars().first()
        if user is None:
            raise BadRequestError("Token is invalid or has expired")

        user.confirm_password = body.get("confirmPassword")
        user.password = body.get("password")
        user.clear_password_reset_token()
        await session.flush()
        logger.info(f"用户重置了密码: {user.username}")
        return self.token_service.sign(user.id)

    async def update_password(self, session: AsyncSession, user: User, body: Dict[str, Any]) -> str:
        """
        校验当前密码后修改密码，返回新的访问令牌

        Raises:
            UnauthorizedError: 当前密码错误
        """
        if not user.check_password(body.get("currentPassword")):
            raise UnauthorizedError("Your current password is wrong")

        user.confirm_password = body.get("confirmPassword")
        user.password = body.get("password")
        await session.flush()
        logger.info(f"用户修改了密码: {user.username}")
        return self.token_service.sign(user.id)
