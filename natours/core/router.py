"""
路由注册模块

Router 是显式的路由构建器：路由以 RouteDefinition 记录的形式登记，
可以由 @controller 装饰器批量生成，也可以直接调用 route()/add_route() 登记，
最后通过 mount() 安装到 FastAPI 应用上。

AppRouter 持有进程级共享的 Router 单例。
"""

import inspect
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from loguru import logger as loguru_logger

from ..exceptions import RouteError
from ..web.exceptions import ForbiddenError
from ..web.response import ResponseWrapper
from ..web.validation import BodyRule, validate_request_body
from .enums import ALL_HTTP_METHODS, Methods

logger = loguru_logger.bind(name="router")

RouteStep = Callable[[Request], Any]


@dataclass
class RouteDefinition:
    """
    路由定义

    Attributes:
        method: HTTP 方法，取值见 Methods
        path: 完整路由路径
        handler: 路由处理函数，接收 request
        middlewares: 同步前置中间件，按执行顺序排列
        async_middlewares: 异步前置中间件，按执行顺序排列
        body_rules: 请求体校验规则
        roles: 允许访问的角色，为空表示不限制
        is_async: 处理函数是否为异步函数，为 None 时自动检测
        name: 路由名称
    """

    method: str
    path: str
    handler: Callable
    middlewares: List[RouteStep] = field(default_factory=list)
    async_middlewares: List[RouteStep] = field(default_factory=list)
    body_rules: List[BodyRule] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    is_async: Optional[bool] = None
    name: Optional[str] = None

    def __post_init__(self):
        self.method = _normalize_method(self.method)
        self.path = normalize_path(self.path)
        self.body_rules = [BodyRule.of(rule) for rule in self.body_rules]
        self.roles = [_role_value(role) for role in self.roles]
        if self.is_async is None:
            self.is_async = inspect.iscoroutinefunction(self.handler)
        if self.name is None:
            self.name = getattr(self.handler, "__name__", None)

    @property
    def http_methods(self) -> List[str]:
        """实际注册到 FastAPI 的 HTTP 方法"""
        if self.method == Methods.ALL.value:
            return list(ALL_HTTP_METHODS)
        return [self.method.upper()]


def _normalize_method(method: Union[str, Methods]) -> str:
    value = method.value if isinstance(method, Methods) else str(method).lower()
    if value not in {m.value for m in Methods}:
        raise RouteError(f"不支持的 HTTP 方法: {method}", route=str(method))
    return value


def _role_value(role: Any) -> str:
    return role.value if isinstance(role, Enum) else str(role)


def normalize_path(path: str) -> str:
    """
    规范化路由路径

    合并重复的斜杠，并把 :id 形式的路径参数转换为 {id}
    """
    path = re.sub(r"/{2,}", "/", path or "/")
    path = re.sub(r"(?<=/):(\w+)", r"{\1}", path)
    if not path.startswith("/"):
        path = "/" + path
    return path


async def _call(fn: Callable, request: Request) -> Any:
    result = fn(request)
    if inspect.isawaitable(result):
        result = await result
    return result


def handle_async_errors(fn: Callable) -> Callable:
    """
    包装异步中间件或处理函数

    异步函数中抛出的异常记录后继续向上抛出，由全局异常处理器统一处理
    """

    @wraps(fn)
    async def wrapper(request: Request) -> Any:
        try:
            return await _call(fn, request)
        except Exception as e:
            logger.debug(f"{request.method} {request.url.path} 处理函数 {getattr(fn, '__name__', fn)} 抛出异常: {e!r}")
            raise

    return wrapper


def authorize_roles(roles: Sequence[str]) -> RouteStep:
    """
    生成角色校验步骤

    request.state.user 不存在或其角色不在允许列表中时返回 403
    """
    allowed = [_role_value(role) for role in roles]

    def authorize(request: Request) -> None:
        user = getattr(request.state, "user", None)
        if user is None or _role_value(getattr(user, "role", None)) not in allowed:
            raise ForbiddenError()

    return authorize


def to_response(result: Any) -> Response:
    """将处理函数返回值转换为 Response"""
    if isinstance(result, Response):
        return result
    if result is None:
        return ResponseWrapper.no_content()
    return JSONResponse(content=jsonable_encoder(result))


async def prepare_request(request: Request) -> None:
    """
    解析请求体和查询参数

    request.state.body: JSON 请求体，空请求体为 {}，无法解析时为 None
    request.state.query: 查询参数字典，前置中间件可以改写
    """
    if not hasattr(request.state, "body"):
        raw = await request.body()
        if not raw:
            body: Any = {}
        else:
            try:
                body = json.loads(raw)
            except ValueError:
                body = None
        request.state.body = body
    if not hasattr(request.state, "query"):
        request.state.query = dict(request.query_params)


class Router:
    """路由构建器"""

    def __init__(self):
        self._routes: List[RouteDefinition] = []

    @property
    def routes(self) -> List[RouteDefinition]:
        """已登记的路由，按登记顺序排列"""
        return list(self._routes)

    def add_route(self, definition: RouteDefinition) -> RouteDefinition:
        """登记路由定义"""
        self._routes.append(definition)
        logger.debug(f"登记路由: {definition.method.upper()} {definition.path} -> {definition.name}")
        return definition

    def route(
        self,
        method: Union[str, Methods],
        path: str,
        handler: Callable,
        *,
        middlewares: Iterable[RouteStep] = (),
        async_middlewares: Iterable[RouteStep] = (),
        body_rules: Iterable[Union[BodyRule, Dict[str, Any]]] = (),
        roles: Iterable[str] = (),
        name: Optional[str] = None
    ) -> RouteDefinition:
        """
        以函数调用方式登记路由

        Args:
            method: HTTP 方法
            path: 路由路径
            handler: 处理函数，接收 request
            middlewares: 同步前置中间件
            async_middlewares: 异步前置中间件
            body_rules: 请求体校验规则
            roles: 允许访问的角色
            name: 路由名称
        """
        return self.add_route(RouteDefinition(
            method=method,
            path=path,
            handler=handler,
            middlewares=list(middlewares),
            async_middlewares=list(async_middlewares),
            body_rules=list(body_rules),
            roles=list(roles),
            name=name,
        ))

    def clear(self) -> None:
        """清空已登记的路由"""
        self._routes.clear()

    def build_chain(self, definition: RouteDefinition) -> Callable[[Request], Any]:
        """
        组装单个路由的处理链

        执行顺序：同步中间件 -> 异步中间件 -> 角色校验 -> 请求体校验 -> 处理函数。
        任一步骤返回 Response 时终止处理链并以该响应作为结果。
        """
        steps: List[RouteStep] = list(definition.middlewares)
        steps.extend(handle_async_errors(mw) for mw in definition.async_middlewares)
        if definition.roles:
            steps.append(authorize_roles(definition.roles))
        if definition.body_rules:
            steps.append(validate_request_body(definition.body_rules))

        handler = handle_async_errors(definition.handler) if definition.is_async else definition.handler

        async def chain(request: Request) -> Response:
            for step in steps:
                result = await _call(step, request)
                if isinstance(result, Response):
                    return result
            return to_response(await _call(handler, request))

        return chain

    def _grouped(self) -> Dict[Tuple[str, str], List[RouteDefinition]]:
        groups: Dict[Tuple[str, str], List[RouteDefinition]] = {}
        for definition in self._routes:
            groups.setdefault((definition.method, definition.path), []).append(definition)
        return groups

    def _make_endpoint(self, definitions: List[RouteDefinition]) -> Callable:
        chains = [self.build_chain(definition) for definition in definitions]

        async def endpoint(request: Request):
            await prepare_request(request)
            response = None
            # 同一方法和路径登记多次时，所有处理链依次执行，返回第一个处理链的响应
            for chain in chains:
                result = await chain(request)
                if response is None:
                    response = result
            return response

        endpoint.__name__ = definitions[0].name or "endpoint"
        return endpoint

    def mount(self, app: FastAPI) -> None:
        """
        将已登记的路由安装到 FastAPI 应用

        以 / 结尾的路径同时注册去掉结尾斜杠的版本
        """
        groups = self._grouped()
        registered = set(groups)

        for (method, path), definitions in groups.items():
            endpoint = self._make_endpoint(definitions)
            http_methods = definitions[0].http_methods
            app.add_api_route(
                path,
                endpoint,
                methods=http_methods,
                name=f"{method}:{path}",
                response_model=None,
                include_in_schema=method != Methods.ALL.value,
            )

            if len(path) > 1 and path.endswith("/"):
                stripped = path.rstrip("/")
                if (method, stripped) not in registered:
                    app.add_api_route(
                        stripped,
                        endpoint,
                        methods=http_methods,
                        name=f"{method}:{stripped}",
                        response_model=None,
                        include_in_schema=False,
                    )

        logger.info(f"已安装 {len(groups)} 个路由")


class AppRouter:
    """共享 Router 单例的持有者"""

    _instance: Optional[Router] = None

    @classmethod
    def get_router(cls) -> Router:
        """获取共享 Router，首次访问时创建"""
        if cls._instance is None:
            cls._instance = Router()
        return cls._instance
