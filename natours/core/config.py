"""
配置管理模块

使用 Dynaconf 加载 YAML 配置，支持远程配置文件、配置文件优先级、环境变量覆盖
"""

import hashlib
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from dynaconf import Dynaconf
from loguru import logger as loguru_logger

from ..utils.common import lookup

logger = loguru_logger.bind(name="config")

# 内置默认值，配置文件和环境变量中未出现的键回落到这里
DEFAULTS: Dict[str, Any] = {
    "app": {
        "name": "Natours",
        "version": "0.1.0",
        "env": "development",
        "base_url": "http://localhost:8000",
        "scan_packages": [
            "natours.services",
            "natours.clients",
            "natours.controllers",
        ],
    },
    "server": {
        "host": "0.0.0.0",
        "port": 8000,
        "reload": False,
        "workers": 1,
        "keep_alive_timeout": 5,
        "graceful_timeout": 30,
        "cors": {
            "enabled": True,
            "allow_origins": ["*"],
        },
    },
    "logging": {
        "level": "INFO",
        "json": False,
        "access_log": True,
        "third_party": {},
    },
    "database": {
        "url": "sqlite+aiosqlite:///./natours.db",
        "echo": False,
        "create_all": True,
    },
    "security": {
        "jwt_secret": "natours-development-secret-change-me",
        "jwt_expires_in": 90 * 24 * 3600,
        "bcrypt_rounds": 12,
        "reset_token_expires_minutes": 10,
    },
    "mail": {
        "enabled": False,
        "host": "localhost",
        "port": 587,
        "username": None,
        "password": None,
        "use_tls": False,
        "from_address": "natours@example.com",
    },
}


def _find_project_root() -> str:
    """查找项目根目录"""
    current_dir = Path(__file__).parent.absolute()

    while current_dir.parent != current_dir:
        if (current_dir / 'pyproject.toml').exists():
            return str(current_dir)
        current_dir = current_dir.parent

    return os.getcwd()


def _is_url(path: Optional[str]) -> bool:
    """检查是否为 URL"""
    return bool(path) and path.startswith(('http://', 'https://'))


def _download_config(url: str, cache_dir: str) -> str:
    """下载配置文件到缓存，下载失败时使用已有缓存"""
    url_hash = hashlib.md5(url.encode()).hexdigest()
    cache_path = os.path.join(cache_dir, f"{url_hash}.yaml")

    try:
        logger.info(f"正在下载配置文件: {url}")
        response = requests.get(url, timeout=30)
        response.raise_for_status()

        with open(cache_path, 'w', encoding='utf-8') as f:
            f.write(response.text)

        logger.info(f"配置文件已缓存到: {cache_path}")
        return cache_path
    except requests.RequestException as e:
        if os.path.exists(cache_path):
            logger.warning(f"下载配置文件失败 ({e})，使用缓存的配置文件: {cache_path}")
            return cache_path
        logger.error(f"下载配置文件失败且无可用缓存: {e}")
        raise


def _get_config_files(config_file: Optional[str] = None) -> List[str]:
    """
    获取配置文件列表，按优先级从低到高排序

    Dynaconf 中后加载的文件覆盖先加载的文件，因此优先级为：
    环境变量 CONFIG_FILE > 参数指定 > 项目根目录/conf > 项目根目录
    """
    project_root = _find_project_root()
    cache_dir = os.path.join(tempfile.gettempdir(), 'natours_config_cache')
    os.makedirs(cache_dir, exist_ok=True)

    config_paths = [
        os.path.join(project_root, 'config.yaml'),
        os.path.join(project_root, 'config.yml'),
        os.path.join(project_root, 'conf', 'config.yaml'),
        os.path.join(project_root, 'conf', 'config.yml'),
        config_file,
        os.getenv('CONFIG_FILE'),
    ]

    config_files: List[str] = []
    for config_path in config_paths:
        if not config_path:
            continue

        if _is_url(config_path):
            config_path = _download_config(config_path, cache_dir)
        elif not os.path.exists(config_path):
            continue

        # 同一文件出现多次时只保留优先级最高的位置
        if config_path in config_files:
            config_files.remove(config_path)
        config_files.append(config_path)

    return config_files


def create_settings(config_file: Optional[str] = None) -> Dynaconf:
    """创建 Dynaconf 设置实例"""
    config_files = _get_config_files(config_file)

    return Dynaconf(
        settings_files=config_files,
        # 不使用前缀，DATABASE__URL 直接覆盖 database.url
        envvar_prefix=False,
        envvar_separator="__",
        env_parse_values=True,
        ignore_unknown_envvars=True,
        merge_enabled=True,
    )


# 全局配置实例
_settings: Optional[Dynaconf] = None


def get_settings(config_file: Optional[str] = None) -> Dynaconf:
    """获取 Dynaconf 设置实例"""
    global _settings

    if _settings is None:
        _settings = create_settings(config_file)

    return _settings


def get_config(key: str, default: Any = None) -> Any:
    """
    获取配置值

    Args:
        key: 点号分隔的配置键，如 database.url
        default: 配置文件和内置默认值中都不存在时返回的值
    """
    value = get_settings().get(key, None)
    if value is None:
        value = lookup(DEFAULTS, key, default)
    return value


def get_config_str(key: str, default: str = "") -> str:
    """获取字符串配置值"""
    value = get_config(key, default)
    return str(value) if value is not None else default


def get_config_int(key: str, default: int = 0) -> int:
    """获取整数配置值"""
    value = get_config(key, default)
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def get_config_bool(key: str, default: bool = False) -> bool:
    """获取布尔配置值"""
    value = get_config(key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes', 'on')
    return bool(value)


def reload_config() -> None:
    """重新加载配置，下次访问时重新读取配置文件"""
    global _settings
    _settings = None
