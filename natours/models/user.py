"""
用户模型
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String, event, inspect
from sqlalchemy.orm import Session, validates, with_loader_criteria

from ..utils.common import utcnow
from ..utils.security import generate_reset_token, hash_password, verify_password
from ..web.exceptions import ModelValidationError
from ..web.validation import is_email
from .base import BaseModel


class UserTypes(str, Enum):
    """用户角色"""

    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


DEFAULT_PHOTO = "profile-dp.webp"
MAX_PASSWORD_BYTES = 72


def _epoch_seconds(value: datetime) -> int:
    """不带时区的 UTC 时间转换为整秒时间戳"""
    return int(value.replace(tzinfo=timezone.utc).timestamp())


class User(BaseModel):
    """用户模型"""
    __tablename__ = "users"

    username = Column(String(20), unique=True, index=True, nullable=False)
    name = Column(String(40), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    photo = Column(String(255), nullable=False, default=DEFAULT_PHOTO)
    role = Column(String(20), nullable=False, default=UserTypes.USER.value)

    # 注销的账户不出现在任何查询结果中
    active = Column(Boolean, nullable=False, default=True)

    password_changed_at = Column(DateTime)
    password_reset_token = Column(String(64), index=True)
    password_reset_expires = Column(DateTime)

    # 密码确认，只在内存中存在
    confirm_password = None

    HIDDEN_FIELDS = (
        "password",
        "active",
        "password_changed_at",
        "password_reset_token",
        "password_reset_expires",
    )
    TRANSIENT_FIELDS = ("confirm_password",)
    PROTECTED_FIELDS = (
        "id",
        "created_at",
        "role",
        "active",
        "password_changed_at",
        "password_reset_token",
        "password_reset_expires",
    )

    @validates("username")
    def validate_username(self, key, value):
        if value is None:
            return value
        if not isinstance(value, str):
            raise ModelValidationError("username", "username must be a string", value)
        if len(value) < 5:
            raise ModelValidationError("username", "a username must have minimum 5 characters", value)
        if len(value) > 20:
            raise ModelValidationError("username", "a username must be equal or lower than 20 characters", value)
        return value

    @validates("name")
    def validate_name(self, key, value):
        if value is None:
            return value
        if not isinstance(value, str):
            raise ModelValidationError("name", "name must be a string", value)
        value = value.strip()
        if len(value) < 10:
            raise ModelValidationError("name", "the name must be 10 characters or long", value)
        if len(value) > 40:
            raise ModelValidationError("name", "the name must be equal or less than 40 characters", value)
        return value

    @validates("email")
    def validate_email(self, key, value):
        if value is None:
            return value
        if not isinstance(value, str) or not is_email(value)[0]:
            raise ModelValidationError("email", f"{value} is not a email", value)
        return value.lower()

    @validates("password")
    def validate_password(self, key, value):
        if value is None:
            return value
        if not isinstance(value, str) or len(value) < 8:
            raise ModelValidationError("password", "password must be at least 8 characters long", value)
        # bcrypt 只处理前 72 个字节
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ModelValidationError("password", f"password must be at most {MAX_PASSWORD_BYTES} bytes long", value)
        return value

    @validates("role")
    def validate_role(self, key, value):
        value = value.value if isinstance(value, UserTypes) else value
        if value not in {role.value for role in UserTypes}:
            raise ModelValidationError("role", f"{value} is not a valid role", value)
        return value

    def check_password(self, candidate: str) -> bool:
        """校验明文密码是否与存储的哈希一致"""
        return verify_password(candidate, self.password)

    def changed_password_after(self, timestamp: datetime) -> bool:
        """
        判断密码是否在给定时间之后修改过

        Args:
            timestamp: 令牌签发时间（UTC）
        """
        if self.password_changed_at is None:
            return False
        # 令牌的 iat 精确到秒
        return _epoch_seconds(self.password_changed_at) > _epoch_seconds(timestamp)

    def create_password_reset_token(self, expires_minutes: int) -> str:
        """
        生成密码重置令牌，数据库只保存摘要

        Returns:
            str: 明文令牌，用于拼接重置链接
        """
        token, token_hash = generate_reset_token()
        self.password_reset_token = token_hash
        self.password_reset_expires = utcnow() + timedelta(minutes=expires_minutes)
        return token

    def clear_password_reset_token(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None


def _hash_new_password(target: User) -> None:
    if target.confirm_password != target.password:
        raise ModelValidationError("confirmPassword", "password and password confirmation doesn't match")
    target.password = hash_password(target.password)
    target.confirm_password = None


@event.listens_for(User, "before_insert")
def hash_password_before_insert(mapper, connection, target: User) -> None:
    """新用户保存前校验密码确认并哈希密码"""
    if target.password is not None:
        _hash_new_password(target)


@event.listens_for(User, "before_update")
def hash_password_before_update(mapper, connection, target: User) -> None:
    """密码变更时重新哈希，并记录修改时间"""
    if not inspect(target).attrs.password.history.has_changes():
        return
    _hash_new_password(target)
    target.password_changed_at = utcnow()


@event.listens_for(Session, "do_orm_execute")
def hide_inactive_users(execute_state) -> None:
    """所有 ORM 查询默认排除已注销用户，设置 include_inactive_users 执行选项时不过滤"""
    if (
        not execute_state.is_select
        or execute_state.is_column_load
        or execute_state.is_relationship_load
        or execute_state.execution_options.get("include_inactive_users", False)
    ):
        return

    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(User, User.active.is_(True), include_aliases=True)
    )
