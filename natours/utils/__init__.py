"""
工具函数模块

包含工具函数和公共模块
"""

from .common import (
    generate_id,
    utcnow,
    get_local_ip,
    camel_to_snake,
    snake_to_camel,
    slugify,
    parse_datetime,
    lookup,
)

__all__ = [
    "generate_id",
    "utcnow",
    "get_local_ip",
    "camel_to_snake",
    "snake_to_camel",
    "slugify",
    "parse_datetime",
    "lookup",
]
