"""
用户服务
"""

from typing import Any, Dict, List, Optional

from loguru import logger as loguru_logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.decorators import service
from ..models import User
from ..web.exceptions import NotFoundError

logger = loguru_logger.bind(name="user_service")

# 用户可以自行修改的字段
UPDATABLE_FIELDS = ("name", "username", "email")


@service()
class UserService:
    """用户服务"""

    async def find_by_id(self, session: AsyncSession, user_id: str) -> Optional[User]:
        return await session.get(User, user_id)

    async def find_by_email(self, session: AsyncSession, email: str) -> Optional[User]:
        if not isinstance(email, str):
            return None
        result = await session.execute(select(User).where(User.email == email.lower()))
        return result.scalars().first()

    async def list(self, session: AsyncSession) -> List[Dict[str, Any]]:
        """获取所有有效用户"""
        result = await session.execute(select(User).order_by(User.created_at))
        return [user.to_dict() for user in result.scalars().all()]

    async def create(self, session: AsyncSession, body: Dict[str, Any]) -> User:
        """
        创建用户，角色固定为普通用户

        Raises:
            ModelValidationError: 字段校验失败或两次输入的密码不一致
        """
        user = User.from_body(body)
        session.add(user)
        await session.flush()
        logger.info(f"新用户注册: {user.username}")
        return user

    async def update_user(self, session: AsyncSession, user_id: str, body: Dict[str, Any]) -> User:
        """更新用户的 name/username/email"""
        user = await self.find_by_id(session, user_id)
        if user is None:
            raise NotFoundError("the user belonging the token does not exists")
        user.apply(body, UPDATABLE_FIELDS)
        await session.flush()
        return user

    async def deactivate(self, session: AsyncSession, user: User) -> None:
        """注销账户，注销后的账户不再出现在查询结果中"""
        user.active = False
        await session.flush()
        logger.info(f"用户已注销: {user.username}")
