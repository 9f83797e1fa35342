"""
日志管理模块

基于 loguru 的日志管理，提供初始化配置功能
各模块通过 loguru_logger.bind(name=...) 获取带名称的日志器
"""

import logging
import os
import sys

from loguru import logger as loguru_logger

from .config import get_config, get_config_bool

logger = loguru_logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# 标准 logging 格式到 loguru 格式的映射
_FORMAT_MAPPING = {
    "%(asctime)s": "{time:YYYY-MM-DD HH:mm:ss}",
    "%(name)s": "{extra[name]}",
    "%(levelname)s": "{level: <8}",
    "%(message)s": "{message}",
    "%(filename)s": "{file.name}",
    "%(funcName)s": "{function}",
    "%(lineno)d": "{line}",
}


def _convert_format(user_format: str) -> str:
    """将标准 logging 格式转换为 loguru 格式"""
    for std_token, loguru_token in _FORMAT_MAPPING.items():
        user_format = user_format.replace(std_token, loguru_token)
    return user_format


def setup_logging() -> None:
    """根据配置初始化 loguru 日志系统"""
    loguru_logger.remove()
    # 未 bind 名称的日志使用默认名称，避免格式化时缺少 extra[name]
    loguru_logger.configure(extra={"name": "natours"})

    log_level = str(get_config("logging.level", "INFO")).upper()
    use_json = get_config_bool("logging.json", False)

    if use_json:
        console_kwargs = {
            "sink": sys.stdout,
            "serialize": True,
            "level": log_level,
            "backtrace": True,
            "diagnose": False,
        }
        file_kwargs = {
            "serialize": True,
            "level": log_level,
            "rotation": "10 MB",
            "retention": "7 days",
            "compression": "zip",
        }
    else:
        user_format = get_config("logging.format", None)
        log_format = _convert_format(user_format) if user_format else DEFAULT_FORMAT

        console_kwargs = {
            "sink": sys.stdout,
            "format": log_format,
            "level": log_level,
            "colorize": True,
            "backtrace": True,
            "diagnose": False,
        }
        file_kwargs = {
            "format": log_format,
            "level": log_level,
            "rotation": "10 MB",
            "retention": "7 days",
            "compression": "zip",
        }

    loguru_logger.add(**console_kwargs)

    log_file = get_config("logging.file")
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        loguru_logger.add(log_file, **file_kwargs)

    # 第三方库仅设置标准 logging 的级别，不做转发
    third_party_config = get_config("logging.third_party", {}) or {}
    for logger_name, level_name in dict(third_party_config).items():
        if isinstance(level_name, str):
            level = getattr(logging, level_name.upper(), logging.INFO)
            logging.getLogger(logger_name).setLevel(level)


def get_logger(name: str = "natours"):
    """
    获取绑定名称的日志器

    Args:
        name: 日志器名称

    Returns:
        loguru Logger 实例
    """
    return loguru_logger.bind(name=name)
