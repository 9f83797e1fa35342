"""
数据库连接和会话管理

基于 SQLAlchemy 异步引擎，每个请求使用独立的会话
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from loguru import logger as loguru_logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ..models import Base
from .config import get_config_bool, get_config_str

logger = loguru_logger.bind(name="database")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    数据库管理器

    Attributes:
        url: 数据库连接地址
        engine: 异步引擎
        session_factory: 异步会话工厂
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or get_config_str("database.url")
        if echo is None:
            echo = get_config_bool("database.echo", False)

        engine_kwargs = {"echo": echo}
        if self.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            # 内存数据库在所有会话之间共享同一个连接
            if ":memory:" in self.url or self.url.rstrip("/").endswith("sqlite+aiosqlite:"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_async_engine(self.url, **engine_kwargs)
        if self.url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        logger.debug(f"数据库引擎已创建: {self.engine.url.render_as_string(hide_password=True)}")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        创建数据库会话

        正常退出时提交，发生异常时回滚
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """创建所有数据表"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("数据表已创建")

    async def drop_all(self) -> None:
        """删除所有数据表"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("数据表已删除")

    async def dispose(self) -> None:
        """释放连接池"""
        await self.engine.dispose()
        logger.debug("数据库连接池已释放")


# 全局数据库实例
_database: Optional[Database] = None


def get_database() -> Database:
    """获取全局数据库实例，首次访问时根据配置创建"""
    global _database

    if _database is None:
        _database = Database()

    return _database


def reset_database() -> None:
    """丢弃全局数据库实例，下次访问时重新创建"""
    global _database
    _database = None
