"""
服务注册表

负责分析构造函数依赖、构建依赖图、计算初始化顺序
"""

import inspect
import typing
from collections import deque
from typing import Any, Dict, List, Optional, Set, Type

from loguru import logger as loguru_logger

from ...exceptions import DependencyError
from ...utils.common import camel_to_snake

logger = loguru_logger.bind(name="di")


def get_injectable_params(cls: Type) -> Dict[str, Dict[str, Any]]:
    """
    获取构造函数中可注入的参数信息

    依赖通过类型注解声明，服务名称为类名的下划线形式：
    def __init__(self, token_service: TokenService) -> 依赖 token_service

    Args:
        cls: 服务类

    Returns:
        参数字典，格式: {param_name: {service_name, is_optional}}
    """
    init = cls.__init__
    if init is object.__init__:
        return {}

    try:
        hints = typing.get_type_hints(init)
    except (NameError, TypeError):
        hints = {}

    params = {}
    for param_name, param in inspect.signature(init).parameters.items():
        if param_name == 'self' or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue

        annotation = hints.get(param_name, param.annotation)
        is_optional = param.default is not inspect.Parameter.empty

        # Optional[X] 取第一个非 None 的类型
        if typing.get_origin(annotation) is typing.Union:
            args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
            annotation = args[0] if args else inspect.Parameter.empty
            is_optional = True

        service_name = None
        if isinstance(annotation, type) and annotation.__module__ != 'builtins':
            service_name = camel_to_snake(annotation.__name__)

        params[param_name] = {
            'service_name': service_name,
            'is_optional': is_optional,
        }

    return params


class ServiceRegistry:
    """服务注册表"""

    def __init__(self):
        self.services: Dict[str, Type] = {}
        self.dependencies: Dict[str, Dict[str, str]] = {}  # service_name -> {param_name: dependency_name}
        self.optional: Dict[str, Set[str]] = {}

    def register_service(self, service_class: Type, service_name: str) -> None:
        """
        注册服务类并分析依赖关系

        Args:
            service_class: 服务类
            service_name: 服务名称
        """
        self.services[service_name] = service_class
        self.dependencies[service_name] = {}
        self.optional[service_name] = set()

        for param_name, info in get_injectable_params(service_class).items():
            if info['service_name']:
                self.dependencies[service_name][param_name] = info['service_name']
                if info['is_optional']:
                    self.optional[service_name].add(info['service_name'])

    def get_dependencies(self, service_name: str) -> Dict[str, str]:
        """获取服务依赖，格式: {param_name: dependency_name}"""
        return self.dependencies.get(service_name, {})

    def get_service_class(self, service_name: str) -> Optional[Type]:
        """获取服务类"""
        return self.services.get(service_name)

    def has_service(self, service_name: str) -> bool:
        """检查服务是否已注册"""
        return service_name in self.services

    def detect_circular_dependencies(self) -> List[List[str]]:
        """
        检测循环依赖

        Returns:
            循环依赖列表，每个元素是一个循环依赖链
        """
        cycles = []
        visited: Set[str] = set()
        rec_stack: List[str] = []

        def dfs(node: str) -> None:
            if node in rec_stack:
                cycles.append(rec_stack[rec_stack.index(node):] + [node])
                return
            if node in visited:
                return

            visited.add(node)
            rec_stack.append(node)
            for dep in self.dependencies.get(node, {}).values():
                if dep in self.services:
                    dfs(dep)
            rec_stack.pop()

        for service_name in self.services:
            dfs(service_name)

        return cycles

    def get_initialization_order(self) -> List[str]:
        """
        获取服务初始化顺序（拓扑排序）

        Raises:
            DependencyError: 存在循环依赖或缺少必需的依赖
        """
        cycles = self.detect_circular_dependencies()
        if cycles:
            raise DependencyError(f"检测到循环依赖: {' -> '.join(cycles[0])}", dependency=cycles[0][0])

        for service_name, deps in self.dependencies.items():
            for dep in deps.values():
                if dep not in self.services and dep not in self.optional[service_name]:
                    raise DependencyError(
                        f"服务 '{service_name}' 依赖的 '{dep}' 未注册",
                        dependency=dep
                    )

        in_degree = {
            name: sum(1 for dep in deps.values() if dep in self.services)
            for name, deps in self.dependencies.items()
        }
        dependents: Dict[str, List[str]] = {name: [] for name in self.services}
        for name, deps in self.dependencies.items():
            for dep in deps.values():
                if dep in self.services:
                    dependents[dep].append(name)

        queue = deque(name for name, degree in in_degree.items() if degree == 0)
        order = []
        while queue:
            name = queue.popleft()
            order.append(name)
            for dependent in dependents[name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        logger.debug(f"服务初始化顺序: {order}")
        return order

    def clear(self) -> None:
        """清空注册表"""
        self.services.clear()
        self.dependencies.clear()
        self.optional.clear()
