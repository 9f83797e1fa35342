"""
REST API 响应格式封装

成功响应：
{
    "status": "success",
    "data": {...},
    ... (count / token / message 等附加字段)
}

失败响应：
{
    "status": "failed" | "error",
    "message": "..."
}
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

_UNSET = object()


class ResponseWrapper:
    """响应包装器

    提供便捷方法创建统一格式的响应
    """

    @staticmethod
    def success(
        data: Any = _UNSET,
        status_code: int = 200,
        message: Optional[str] = None,
        **extra: Any
    ) -> JSONResponse:
        """
        创建成功响应

        Args:
            data: 响应数据，不传时响应中不包含 data 字段
            status_code: HTTP 状态码
            message: 响应消息
            **extra: 附加字段，如 count、token

        Returns:
            JSONResponse
        """
        content = {"status": "success"}
        if message is not None:
            content["message"] = message
        content.update(extra)
        if data is not _UNSET:
            content["data"] = data
        return JSONResponse(status_code=status_code, content=jsonable_encoder(content))

    @staticmethod
    def created(data: Any = _UNSET, message: Optional[str] = None, **extra: Any) -> JSONResponse:
        """创建成功响应（201）"""
        return ResponseWrapper.success(data, status_code=201, message=message, **extra)

    @staticmethod
    def failed(message: str, status_code: int = 400, status: str = "failed", **extra: Any) -> JSONResponse:
        """
        创建失败响应

        Args:
            message: 错误消息
            status_code: HTTP 状态码
            status: 响应中的 status 字段
            **extra: 附加字段，如 error
        """
        content = {"status": status, "message": message}
        content.update(extra)
        return JSONResponse(status_code=status_code, content=jsonable_encoder(content))

    @staticmethod
    def no_content() -> Response:
        """无内容响应（204）"""
        return Response(status_code=204)


# 全局响应包装器实例
response = ResponseWrapper()
