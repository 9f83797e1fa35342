"""
核心基础设施模块

包含配置、日志、路由注册、依赖注入、数据库等核心功能
"""

from .config import (
    get_settings,
    get_config,
    get_config_str,
    get_config_int,
    get_config_bool,
    reload_config
)
from .logger import get_logger, logger, setup_logging

__all__ = [
    "get_settings",
    "get_config",
    "get_config_str",
    "get_config_int",
    "get_config_bool",
    "reload_config",
    "get_logger",
    "logger",  # loguru logger
    "setup_logging",
]
