"""
Natours 应用程序主类

负责加载配置、初始化日志、自动发现组件、创建 FastAPI 应用并安装路由
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy import text

from ..utils import get_local_ip
from ..web.errors import register_exception_handlers
from ..web.middleware import DatabaseSessionMiddleware, Middleware, RequestLoggingMiddleware
from .auto_configuration import AutoConfigurationManager
from .config import get_config, get_config_bool, get_config_int, get_config_str, get_settings
from .database import Database, get_database
from .di import DependencyContainer
from .logger import setup_logging
from .router import AppRouter, Router
from .server import ServerManager

# 当前应用实例（用于在路由处理函数中获取服务）
_current_app: Optional['Application'] = None


def app() -> 'Application':
    """获取当前应用实例"""
    if _current_app is None:
        raise RuntimeError("应用实例未初始化，请确保应用已创建")
    return _current_app


class Application:
    """Natours 应用程序主类"""

    def __init__(
            self,
            name: Optional[str] = None,
            config_file: Optional[str] = None,
            **kwargs
    ):
        """
        初始化应用程序

        Args:
            name: 应用程序名称，默认读取 app.name
            config_file: 配置文件路径
            **kwargs: 其他参数
                - router: 要安装的 Router，默认为共享 Router
                - database: Database 实例，默认为全局实例
                - auto_configuration: 是否自动发现组件，默认 True
                - 其余参数作为配置项写入，如 {"database.url": "..."}
        """
        self.config = get_settings(config_file)
        self.router: Router = kwargs.pop('router', None) or AppRouter.get_router()
        self._database: Optional[Database] = kwargs.pop('database', None)
        self.auto_configuration_enabled = kwargs.pop('auto_configuration', True)

        self._apply_config(kwargs)

        self.name = name or get_config_str("app.name", "Natours")
        self.version = get_config_str("app.version", "0.1.0")

        setup_logging()
        self.logger = logger.bind(name="application")

        # 依赖注入容器与组件注册表
        self.di_container = DependencyContainer()
        self.services: Dict[str, Any] = {}
        self.clients: Dict[str, Any] = {}

        self.middlewares: List[Middleware] = [
            Middleware(DatabaseSessionMiddleware, database=self._database),
        ]
        if get_config_bool("logging.access_log", True):
            self.middlewares.append(Middleware(RequestLoggingMiddleware))

        self.startup_hooks: List[Callable] = []
        self.shutdown_hooks: List[Callable] = []

        self.server_manager = ServerManager()

        # 注册为当前应用实例，服务在构造时即可通过 app() 访问
        global _current_app
        _current_app = self

        if self.auto_configuration_enabled:
            self._auto_configure()

        self._fastapi_app: FastAPI = self._create_fastapi_app()

    @property
    def database(self) -> Database:
        """应用使用的数据库"""
        return self._database or get_database()

    def _apply_config(self, kwargs: Dict[str, Any]) -> None:
        """应用配置参数"""
        for key, value in kwargs.items():
            self.config.set(key, value)

    def _auto_configure(self) -> None:
        """扫描组件并注册到依赖注入容器"""
        packages = get_config("app.scan_packages") or []
        self.logger.info("🔍 开始自动发现组件...")
        manager = AutoConfigurationManager()
        manager.auto_discover(list(packages))
        manager.apply_auto_configuration(self)

    def add_middleware(self, middleware: Middleware) -> None:
        """添加中间件"""
        self.middlewares.append(middleware)
        if getattr(self, '_fastapi_app', None) is not None:
            self._fastapi_app.add_middleware(middleware.middleware_class, **middleware.kwargs)
        self.logger.debug(f"已添加中间件: {middleware.middleware_class.__name__}")

    def add_startup_hook(self, hook: Callable) -> None:
        """添加启动钩子"""
        self.startup_hooks.append(hook)
        self.logger.debug(f"已添加启动钩子: {hook.__name__}")

    def add_shutdown_hook(self, hook: Callable) -> None:
        """添加关闭钩子"""
        self.shutdown_hooks.append(hook)
        self.logger.debug(f"已添加关闭钩子: {hook.__name__}")

    def register_service(self, name: str, service: Any) -> None:
        """注册服务"""
        self.services[name] = service
        self.logger.debug(f"已注册服务: {name}")

    def get_service(self, name: str) -> Any:
        """获取服务，factory 作用域的服务每次返回新实例"""
        if name in self.services:
            return self.services[name]
        if self.di_container.has_service(name):
            return self.di_container.get_service(name)
        return None

    def has_service(self, name: str) -> bool:
        """检查是否有服务"""
        return name in self.services or self.di_container.has_service(name)

    def get_client(self, name: str) -> Any:
        """获取客户端"""
        return self.clients.get(name)

    def has_client(self, name: str) -> bool:
        """检查是否有客户端"""
        return name in self.clients

    async def _run_hooks(self, hooks: List[Callable], stage: str) -> None:
        for hook in hooks:
            try:
                if asyncio.iscoroutinefunction(hook):
                    await hook()
                else:
                    hook()
            except Exception as e:
                self.logger.error(f"{stage}钩子 {hook.__name__} 执行失败: {e}")

    def _create_fastapi_app(self) -> FastAPI:
        """创建 FastAPI 应用实例"""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            """应用生命周期管理"""
            if get_config_bool("database.create_all", True):
                await self.database.create_all()

            await self._run_hooks(self.startup_hooks, "启动")
            self.logger.info(f"🚀 {self.name} 已启动")

            yield

            self.logger.info(f"🛑 关闭 {self.name}...")
            await self._run_hooks(self.shutdown_hooks, "关闭")
            await self.database.dispose()

        app = FastAPI(
            title=self.name,
            version=self.version,
            lifespan=lifespan,
        )

        # 添加 CORS 中间件
        if get_config_bool("server.cors.enabled", True):
            cors_config = get_config("server.cors") or {}
            app.add_middleware(
                CORSMiddleware,
                allow_origins=list(cors_config.get("allow_origins", ["*"])),
                allow_credentials=cors_config.get("allow_credentials", False),
                allow_methods=list(cors_config.get("allow_methods", ["*"])),
                allow_headers=list(cors_config.get("allow_headers", ["*"])),
            )
            self.logger.debug("CORS 中间件已启用")

        # 后添加的中间件位于外层，访问日志包裹数据库会话
        for middleware in self.middlewares:
            app.add_middleware(middleware.middleware_class, **middleware.kwargs)

        register_exception_handlers(app)

        # 健康检查端点必须先于兜底路由注册
        self._add_health_endpoints(app)

        self.router.mount(app)

        return app

    def _add_health_endpoints(self, app: FastAPI) -> None:
        """添加健康检查端点"""

        @app.get("/health")
        async def health_check():
            """健康检查端点"""
            return {
                "status": "healthy",
                "app": self.name,
                "version": self.version,
            }

        @app.get("/health/ready")
        async def readiness_check():
            """就绪检查端点"""
            try:
                async with self.database.engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                database_status = "up"
            except Exception as e:
                self.logger.warning(f"数据库不可用: {e}")
                database_status = "down"
            return {
                "status": "ready" if database_status == "up" else "not_ready",
                "app": self.name,
                "services": {"database": database_status},
            }

        @app.get("/health/live")
        async def liveness_check():
            """存活检查端点"""
            return {
                "status": "alive",
                "app": self.name
            }

    def run(
            self,
            host: Optional[str] = None,
            port: Optional[int] = None,
            reload: Optional[bool] = None,
            **kwargs
    ) -> None:
        """
        运行应用程序

        Args:
            host: 主机地址，默认读取 server.host
            port: 端口号，默认读取 server.port
            reload: 是否开启热重载，默认读取 server.reload
            **kwargs: 其他服务器参数
        """
        host = host or get_config_str("server.host", "0.0.0.0")
        port = port or get_config_int("server.port", 8000)
        if reload is None:
            reload = get_config_bool("server.reload", False)

        display_host = get_local_ip() if host == "0.0.0.0" else host

        self.logger.info(f"🌐 服务器启动: http://{display_host}:{port}")
        self.logger.info(f"📚 API 文档: http://{display_host}:{port}/docs")
        self.logger.info(f"🔍 健康检查: http://{display_host}:{port}/health")

        self.server_manager.start_server(
            app=self._fastapi_app,
            host=host,
            port=port,
            reload=reload,
            keep_alive_timeout=get_config_int("server.keep_alive_timeout", 5),
            graceful_timeout=get_config_int("server.graceful_timeout", 30),
            **kwargs
        )
        self.logger.info("应用程序已关闭")

    def get_fastapi_app(self) -> FastAPI:
        """获取 FastAPI 应用实例"""
        return self._fastapi_app


# 便捷函数
def create_app(
        name: Optional[str] = None,
        config_file: Optional[str] = None,
        **kwargs
) -> Application:
    """创建 Natours 应用程序实例"""
    return Application(name, config_file, **kwargs)


def get_service(name: str):
    """获取当前应用中的服务"""
    return app().get_service(name)


def get_client(name: str):
    """获取当前应用中的客户端"""
    return app().get_client(name)
