"""
装饰器模块

提供声明式的路由注册装饰器：

    @controller("/api/v1/tours")
    class TourController:

        @get("/")
        async def get_tours(self, request):
            ...

        @post("/")
        @use(login_required(UserTypes.ADMIN))
        @validate_body(BodyRule("name", TypeStrings.STRING), {"name": "price", "type": "number"})
        async def add_tour(self, request):
            ...

方法装饰器只在方法上记录元数据并返回原函数，@controller 在类定义完成时读取元数据，
为每个路由方法组装处理链并登记到 Router。

另外提供 @service / @client 组件装饰器，由自动配置扫描后注册到依赖注入容器。
"""

from typing import Any, Callable, Dict, Optional, Union

from loguru import logger as loguru_logger

from ..utils.common import camel_to_snake
from ..web.validation import BodyRule
from .enums import MetadataKeys, Methods
from .metadata import define_metadata, get_metadata, has_metadata
from .router import AppRouter, RouteDefinition, Router

logger = loguru_logger.bind(name="decorators")


def route(method: Union[str, Methods], path: str):
    """
    路由装饰器

    Args:
        method: HTTP 方法
        path: 路由路径，与 @controller 的前缀拼接
    """
    verb = method if isinstance(method, Methods) else Methods(str(method).lower())

    def decorator(func):
        define_metadata(MetadataKeys.PATH, path, func)
        define_metadata(MetadataKeys.METHOD, verb, func)
        return func
    return decorator


def get(path: str):
    """GET 路由装饰器"""
    return route(Methods.GET, path)


def post(path: str):
    """POST 路由装饰器"""
    return route(Methods.POST, path)


def put(path: str):
    """PUT 路由装饰器"""
    return route(Methods.PUT, path)


def patch(path: str):
    """PATCH 路由装饰器"""
    return route(Methods.PATCH, path)


def delete(path: str):
    """DELETE 路由装饰器"""
    return route(Methods.DELETE, path)


def all_(path: str):
    """匹配所有 HTTP 方法的路由装饰器"""
    return route(Methods.ALL, path)


def validate_body(*rules: Union[BodyRule, Dict[str, Any]]):
    """
    请求体校验装饰器

    Args:
        *rules: 字段规则，按顺序校验，第一个失败的规则决定响应
    """
    def decorator(func):
        define_metadata(MetadataKeys.VALIDATOR, [BodyRule.of(rule) for rule in rules], func)
        return func
    return decorator


def _prepend(key: MetadataKeys, middleware: Callable, func: Callable) -> None:
    # 装饰器自下而上生效，前插保证书写顺序（自上而下）即执行顺序
    existing = get_metadata(key, func, default=[])
    define_metadata(key, [middleware, *existing], func)


def use(middleware: Callable):
    """
    同步前置中间件装饰器

    中间件接收 request，返回 None 继续执行，返回 Response 或抛出 AppError 终止处理链
    """
    def decorator(func):
        _prepend(MetadataKeys.MIDDLEWARE, middleware, func)
        return func
    return decorator


def use_async(middleware: Callable):
    """异步前置中间件装饰器，中间件抛出的异常交给全局异常处理器"""
    def decorator(func):
        _prepend(MetadataKeys.ASYNC_MIDDLEWARE, middleware, func)
        return func
    return decorator


def authorize_users(*roles: Any):
    """
    角色授权装饰器

    Args:
        *roles: 允许访问的角色，为空表示不限制
    """
    def decorator(func):
        define_metadata(MetadataKeys.AUTHORIZE, list(roles), func)
        return func
    return decorator


def async_handler(func):
    """标记处理函数为异步函数"""
    define_metadata(MetadataKeys.ASYNC, True, func)
    return func


def controller(prefix: str, router: Optional[Router] = None):
    """
    控制器类装饰器

    实例化控制器类，为每个带有路由元数据的方法组装处理链，
    以 prefix + 方法路径（合并重复斜杠）登记到 router，未指定时使用共享 Router。

    Args:
        prefix: 路由前缀
        router: 目标 Router
    """
    def decorator(cls):
        target_router = router if router is not None else AppRouter.get_router()
        instance = cls()
        count = 0

        for key in list(vars(cls)):
            if not has_metadata(MetadataKeys.METHOD, cls, key):
                continue

            method = get_metadata(MetadataKeys.METHOD, cls, key)
            path = get_metadata(MetadataKeys.PATH, cls, key, default="")
            is_async = True if get_metadata(MetadataKeys.ASYNC, cls, key) else None

            target_router.add_route(RouteDefinition(
                method=method,
                path=f"{prefix}{path}",
                handler=getattr(instance, key),
                middlewares=list(get_metadata(MetadataKeys.MIDDLEWARE, cls, key, default=[])),
                async_middlewares=list(get_metadata(MetadataKeys.ASYNC_MIDDLEWARE, cls, key, default=[])),
                body_rules=list(get_metadata(MetadataKeys.VALIDATOR, cls, key, default=[])),
                roles=list(get_metadata(MetadataKeys.AUTHORIZE, cls, key, default=[])),
                is_async=is_async,
                name=f"{cls.__name__}.{key}",
            ))
            count += 1

        cls.__natours_controller__ = {
            'prefix': prefix,
            'router': target_router,
            'instance': instance,
        }
        logger.debug(f"控制器 {cls.__name__} 登记了 {count} 个路由，前缀 {prefix}")
        return cls
    return decorator


def service(name: str = None, scope: str = "singleton", **kwargs):
    """
    服务装饰器

    Args:
        name: 服务名称，默认为类名的下划线形式
        scope: 作用域，singleton 或 factory
        **kwargs: 其他服务参数
    """
    def decorator(cls):
        cls.__natours_service__ = {
            'name': name or camel_to_snake(cls.__name__),
            'scope': scope,
            'kwargs': kwargs
        }
        return cls
    return decorator


def client(name: str = None, **kwargs):
    """
    客户端装饰器

    Args:
        name: 客户端名称，默认为类名的下划线形式
        **kwargs: 其他客户端参数
    """
    def decorator(cls):
        cls.__natours_client__ = {
            'name': name or camel_to_snake(cls.__name__),
            'kwargs': kwargs
        }
        return cls
    return decorator
