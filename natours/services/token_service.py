"""
访问令牌服务

使用 PyJWT 签发和校验 HS256 令牌，载荷格式: {"userId": ..., "iat": ..., "exp": ...}
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from loguru import logger as loguru_logger

from ..core.config import get_config_int, get_config_str
from ..core.decorators import service
from ..exceptions import ConfigurationError
from ..web.exceptions import UnauthorizedError

logger = loguru_logger.bind(name="token_service")

ALGORITHM = "HS256"


@service()
class TokenService:
    """访问令牌服务"""

    @property
    def secret(self) -> str:
        secret = get_config_str("security.jwt_secret")
        if not secret:
            raise ConfigurationError("未配置 JWT 密钥", config_key="security.jwt_secret")
        return secret

    @property
    def expires_in(self) -> int:
        """令牌有效期（秒）"""
        return get_config_int("security.jwt_expires_in", 90 * 24 * 3600)

    def sign(self, user_id: str) -> str:
        """为用户签发令牌"""
        now = datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "iat": now,
            "exp": now + timedelta(seconds=self.expires_in),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        校验令牌

        Returns:
            解码后的载荷

        Raises:
            UnauthorizedError: 令牌过期、签名错误或格式错误
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Your token has expired! Please login again")
        except jwt.InvalidTokenError as e:
            logger.debug(f"令牌校验失败: {e}")
            raise UnauthorizedError("Invalid token. Please login again!")

        if "userId" not in payload or "iat" not in payload:
            raise UnauthorizedError("Invalid token. Please login again!")
        return payload

    @staticmethod
    def issued_at(payload: Dict[str, Any]) -> datetime:
        """令牌签发时间（UTC，不带时区）"""
        return datetime.fromtimestamp(payload["iat"], tz=timezone.utc).replace(tzinfo=None)
