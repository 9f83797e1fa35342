"""
依赖注入容器

管理 dependency_injector Container 和服务的生命周期
"""

from typing import Any, Dict, Type

from dependency_injector import containers, providers
from loguru import logger as loguru_logger

from ...exceptions import DependencyError
from .registry import ServiceRegistry

logger = loguru_logger.bind(name="di")

SINGLETON = 'singleton'
FACTORY = 'factory'


class DependencyContainer:
    """依赖注入容器管理器"""

    def __init__(self):
        self.container = containers.DynamicContainer()
        self.registry = ServiceRegistry()
        self.scopes: Dict[str, str] = {}
        self.providers: Dict[str, Any] = {}

    def register_service(self, service_class: Type, service_name: str, scope: str = SINGLETON) -> None:
        """
        注册服务到容器

        Args:
            service_class: 服务类
            service_name: 服务名称
            scope: 生命周期范围 (singleton/factory)
        """
        if scope not in (SINGLETON, FACTORY):
            raise DependencyError(f"服务 '{service_name}' 的作用域 '{scope}' 不受支持", dependency=service_name)
        self.registry.register_service(service_class, service_name)
        self.scopes[service_name] = scope

    def build_container(self) -> None:
        """按照依赖顺序为所有服务创建 Provider"""
        for service_name in self.registry.get_initialization_order():
            service_class = self.registry.get_service_class(service_name)
            dependencies = {
                param_name: self.providers[dep_name]
                for param_name, dep_name in self.registry.get_dependencies(service_name).items()
                if dep_name in self.providers
            }

            provider_class = providers.Singleton if self.scopes[service_name] == SINGLETON else providers.Factory
            provider = provider_class(service_class, **dependencies)

            self.providers[service_name] = provider
            setattr(self.container, service_name, provider)
            logger.debug(f"已注册服务提供者: {service_name} (依赖: {list(dependencies)})")

    def get_service(self, service_name: str) -> Any:
        """
        获取服务实例，单例服务每次返回同一实例

        Raises:
            KeyError: 服务不存在
        """
        if service_name not in self.providers:
            raise KeyError(f"服务 '{service_name}' 未注册")
        return self.providers[service_name]()

    def has_service(self, service_name: str) -> bool:
        """检查服务是否已注册"""
        return service_name in self.providers

    def clear(self) -> None:
        """清空容器"""
        self.container = containers.DynamicContainer()
        self.registry.clear()
        self.scopes.clear()
        self.providers.clear()
