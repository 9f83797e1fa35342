"""
自动配置模块

扫描配置中列出的包，导入其中的全部模块：
- 控制器模块在导入时通过 @controller 把路由登记到共享 Router
- 带有 @service / @client 标记的类注册到依赖注入容器
"""

import importlib
import inspect
import pkgutil
from typing import Any, Dict, Iterable, List, Type

from loguru import logger as loguru_logger

from ..exceptions import InitializationError
from .di import DependencyContainer

logger = loguru_logger.bind(name="auto_configuration")


class AutoConfigurationManager:
    """自动配置管理器"""

    def __init__(self):
        self.discovered_components: Dict[str, List[Dict[str, Any]]] = {
            'services': [],
            'clients': [],
            'controllers': [],
        }
        self.scanned_modules: List[str] = []

    def auto_discover(self, packages: Iterable[str]) -> None:
        """
        自动发现应用组件

        Args:
            packages: 要扫描的包名列表

        Raises:
            InitializationError: 包或模块无法导入
        """
        for package_name in packages:
            logger.info(f"开始自动发现 {package_name} 包中的组件...")
            try:
                package = importlib.import_module(package_name)
            except ImportError as e:
                raise InitializationError(f"无法导入包 {package_name}: {e}", component=package_name) from e

            self._scan_module(package)
            for module_info in pkgutil.walk_packages(getattr(package, '__path__', []), prefix=f"{package_name}."):
                if module_info.name.rsplit('.', 1)[-1].startswith('_'):
                    continue
                try:
                    module = importlib.import_module(module_info.name)
                except ImportError as e:
                    raise InitializationError(f"无法导入模块 {module_info.name}: {e}", component=module_info.name) from e
                self._scan_module(module)

        logger.debug(f"自动发现完成，发现组件: {self.summary()}")

    def _scan_module(self, module) -> None:
        """扫描模块中的组件"""
        if module.__name__ in self.scanned_modules:
            return
        self.scanned_modules.append(module.__name__)

        for _, obj in inspect.getmembers(module, inspect.isclass):
            # 只登记在本模块中定义的类，避免重复发现被导入的类
            if obj.__module__ != module.__name__:
                continue
            self._check_class(obj)

    def _check_class(self, cls: Type) -> None:
        """检查类是否是装饰的组件"""
        if '__natours_controller__' in vars(cls):
            self.discovered_components['controllers'].append({'class': cls, 'module': cls.__module__})
        elif '__natours_service__' in vars(cls):
            self.discovered_components['services'].append({'class': cls, 'module': cls.__module__})
        elif '__natours_client__' in vars(cls):
            self.discovered_components['clients'].append({'class': cls, 'module': cls.__module__})

    def summary(self) -> Dict[str, List[str]]:
        return {
            kind: [info['class'].__name__ for info in components]
            for kind, components in self.discovered_components.items()
        }

    def apply_auto_configuration(self, app) -> None:
        """把发现的服务和客户端注册到应用的依赖注入容器"""
        container: DependencyContainer = app.di_container

        for client_info in self.discovered_components['clients']:
            cls = client_info['class']
            client_name = cls.__natours_client__['name']
            container.register_service(cls, client_name)
            logger.debug(f"已注册客户端到容器: '{client_name}' ({client_info['module']}.{cls.__name__})")

        for service_info in self.discovered_components['services']:
            cls = service_info['class']
            config = cls.__natours_service__
            container.register_service(cls, config['name'], scope=config.get('scope', 'singleton'))
            logger.debug(f"已注册服务到容器: '{config['name']}' ({service_info['module']}.{cls.__name__})")

        container.build_container()
        logger.info("依赖注入容器构建成功")

        for client_info in self.discovered_components['clients']:
            name = client_info['class'].__natours_client__['name']
            app.clients[name] = container.get_service(name)
            logger.info(f"自动注册客户端: '{name}'")

        for service_info in self.discovered_components['services']:
            config = service_info['class'].__natours_service__
            if config.get('scope', 'singleton') == 'singleton':
                app.services[config['name']] = container.get_service(config['name'])
            logger.info(f"自动注册服务（依赖注入）: '{config['name']}'")

        for controller_info in self.discovered_components['controllers']:
            logger.info(f"已加载控制器: {controller_info['module']}.{controller_info['class'].__name__}")
