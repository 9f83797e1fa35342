"""
服务器管理器

使用 Hypercorn 作为 ASGI 服务器，单进程运行
"""

import asyncio
import signal
from typing import Any, Dict, Optional

import hypercorn.asyncio
from hypercorn.config import Config
from loguru import logger as loguru_logger

from ..utils import get_local_ip

logger = loguru_logger.bind(name="server")


class HypercornServer:
    """Hypercorn 服务器"""

    def __init__(self, app, host: str = "0.0.0.0", port: int = 8000, **kwargs):
        self.app = app
        self.host = host
        self.port = port
        self.kwargs = kwargs
        self._running = False
        self._shutdown_event: Optional[asyncio.Event] = None

    def build_config(self) -> Config:
        """构建 Hypercorn 配置"""
        config = Config()
        config.bind = [f"{self.host}:{self.port}"]
        config.use_reloader = bool(self.kwargs.get('reload', False))
        config.keep_alive_timeout = self.kwargs.get('keep_alive_timeout', 5)
        config.graceful_timeout = self.kwargs.get('graceful_timeout', 30)
        # 访问日志由应用中间件负责
        config.accesslog = None
        return config

    async def serve(self) -> None:
        """运行服务器直到收到关闭信号"""
        self._shutdown_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._request_shutdown, sig)
            except (NotImplementedError, RuntimeError):
                # Windows 不支持 add_signal_handler
                signal.signal(sig, lambda signum, frame: self._request_shutdown(signum))

        self._running = True
        try:
            await hypercorn.asyncio.serve(self.app, self.build_config(), shutdown_trigger=self._shutdown_event.wait)
        finally:
            self._running = False

    def _request_shutdown(self, signum) -> None:
        logger.info(f"收到信号 {signum}，正在关闭服务器...")
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    def start(self) -> None:
        """启动服务器（阻塞）"""
        try:
            asyncio.run(self.serve())
        except Exception as e:
            logger.error(f"Hypercorn 服务器启动失败: {e}")
            raise

    def stop(self) -> None:
        """停止服务器"""
        if self._shutdown_event is not None:
            self._shutdown_event.set()
        self._running = False

    @property
    def is_running(self) -> bool:
        """检查服务器是否运行中"""
        return self._running

    def get_url(self) -> str:
        """获取服务器 URL"""
        display_host = get_local_ip() if self.host == "0.0.0.0" else self.host
        return f"http://{display_host}:{self.port}"


class ServerManager:
    """服务器管理器"""

    def __init__(self):
        self._current_server: Optional[HypercornServer] = None

    def start_server(self, app, host: str = "0.0.0.0", port: int = 8000, **kwargs) -> None:
        """
        启动 Hypercorn 服务器

        Args:
            app: ASGI 应用
            host: 主机地址
            port: 端口号
            **kwargs: 其他配置参数，包括:
                - reload: 是否启用热重载
                - keep_alive_timeout: keep-alive 超时时间
                - graceful_timeout: 优雅关闭超时时间
        """
        if self._current_server and self._current_server.is_running:
            logger.warning("服务器已在运行中，请先停止当前服务器")
            return

        self._current_server = HypercornServer(app, host, port, **kwargs)
        try:
            self._current_server.start()
        finally:
            self.stop_server()

    def stop_server(self) -> None:
        """停止当前服务器"""
        if self._current_server:
            self._current_server.stop()
            self._current_server = None

    def get_server_info(self) -> Dict[str, Any]:
        """获取服务器信息"""
        if not self._current_server:
            return {"status": "not_running"}

        return {
            "status": "running" if self._current_server.is_running else "stopped",
            "url": self._current_server.get_url(),
            "host": self._current_server.host,
            "port": self._current_server.port,
        }
