"""
公共工具函数

包含常用的工具函数和辅助方法
"""

import re
import socket
import unicodedata
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from loguru import logger as loguru_logger

logger = loguru_logger.bind(name="utils")


def generate_id() -> str:
    """生成唯一ID"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """获取当前 UTC 时间（不带时区信息，与数据库列保持一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_local_ip() -> str:
    """获取本机真实 IP 地址"""
    try:
        # 不实际发送数据，只是用于获取本地 IP
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            s.connect(('8.8.8.8', 80))
            ip = s.getsockname()[0]
        finally:
            s.close()
        return ip
    except OSError:
        try:
            ip = socket.gethostbyname(socket.gethostname())
            if ip.startswith('127.'):
                return 'localhost'
            return ip
        except OSError:
            return 'localhost'


def camel_to_snake(name: str) -> str:
    """
    将驼峰命名转换为下划线分隔的小写形式

    Examples:
        TourService -> tour_service
        maxGroupSize -> max_group_size
        HTTPClient -> http_client
    """
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    s2 = re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1)
    return s2.lower()


def snake_to_camel(name: str) -> str:
    """
    将下划线命名转换为小驼峰形式

    Examples:
        max_group_size -> maxGroupSize
        id -> id
    """
    head, *tail = name.split('_')
    return head + ''.join(part.title() for part in tail)


def slugify(value: str) -> str:
    """
    生成 URL 友好的 slug

    Args:
        value: 原始字符串

    Returns:
        str: 小写、以连字符分隔的 slug
    """
    value = unicodedata.normalize('NFKD', value).encode('ascii', 'ignore').decode('ascii')
    value = re.sub(r'[^\w\s-]', '', value.lower())
    return re.sub(r'[-\s_]+', '-', value).strip('-')


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    解析日期时间

    Args:
        value: datetime 对象或 ISO 8601 字符串

    Returns:
        Optional[datetime]: 解析后的日期时间对象，无法解析时返回 None
    """
    if value is None or isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"无法解析日期时间: {value}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def lookup(data: Dict[str, Any], key: str, default: Any = None) -> Any:
    """
    按点号分隔的键获取嵌套字典中的值

    Args:
        data: 字典数据
        key: 键，支持点号分隔的嵌套键
        default: 默认值
    """
    value: Any = data
    try:
        for k in key.split('.'):
            value = value[k]
        return value
    except (KeyError, TypeError):
        return default
