"""
Natours 旅游线路预订 API

- core/: 核心基础设施（配置、日志、路由注册、依赖注入、数据库、服务器）
- web/: 请求体校验、查询辅助、响应格式、异常处理
- models/: ORM 模型层
- services/: 业务逻辑层
- clients/: 外部服务客户端
- controllers/: 路由控制器
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
