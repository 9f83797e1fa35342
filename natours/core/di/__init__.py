"""
依赖注入模块

提供基于 dependency_injector 的自动依赖注入功能
"""

from .container import DependencyContainer
from .registry import ServiceRegistry, get_injectable_params

__all__ = [
    'DependencyContainer',
    'ServiceRegistry',
    'get_injectable_params',
]
