"""
安全相关工具函数

密码哈希基于 bcrypt，重置令牌基于 secrets + sha256
"""

import hashlib
import secrets
from typing import Tuple

import bcrypt

from ..core.config import get_config_int


def hash_password(password: str, rounds: int = None) -> str:
    """
    哈希密码

    Args:
        password: 原始密码
        rounds: bcrypt cost factor，默认读取 security.bcrypt_rounds

    Returns:
        str: bcrypt 格式的哈希值 ($2b$...)
    """
    if rounds is None:
        rounds = get_config_int("security.bcrypt_rounds", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    验证密码

    Args:
        password: 原始密码
        password_hash: 哈希后的密码

    Returns:
        bool: 是否匹配，哈希格式非法时返回 False
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except (ValueError, AttributeError):
        return False


def hash_token(token: str) -> str:
    """对重置令牌做 sha256 摘要，数据库只保存摘要"""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def generate_reset_token() -> Tuple[str, str]:
    """
    生成密码重置令牌

    Returns:
        (明文令牌, 令牌摘要)
    """
    token = secrets.token_hex(32)
    return token, hash_token(token)
