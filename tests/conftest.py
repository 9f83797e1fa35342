import itertools
import os
from pathlib import Path
from typing import AsyncGenerator

# 必须在导入 natours 之前指定测试配置文件
os.environ["CONFIG_FILE"] = str(Path(__file__).parent / "conf" / "config.yaml")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from natours.core.application import Application
from natours.core.config import reload_config
from natours.core.database import Database
from natours.models import Tour, User
from natours.services.token_service import TokenService

reload_config()

DEFAULT_PASSWORD = "pass1234word"


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """每个测试使用独立的内存数据库"""
    db = Database()
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest.fixture
def application(database: Database) -> Application:
    return Application(database=database)


@pytest_asyncio.fixture
async def client(application: Application) -> AsyncGenerator[AsyncClient, None]:
    # 未处理异常由全局处理器转换为 500 响应，不在测试中重新抛出
    transport = ASGITransport(app=application.get_fastapi_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def mailer(application: Application):
    return application.get_client("mailer")


@pytest_asyncio.fixture
async def make_user(database: Database):
    """创建用户并返回 (用户, Authorization 请求头)"""
    counter = itertools.count(1)

    async def factory(role: str = "user", password: str = DEFAULT_PASSWORD, **fields):
        n = next(counter)
        values = {
            "username": f"tester{n:03d}",
            "name": f"Test User Number {n}",
            "email": f"tester{n}@natours.dev",
            "password": password,
            "confirm_password": password,
            "role": role,
        }
        values.update(fields)
        async with database.session() as session:
            user = User(**values)
            session.add(user)
        token = TokenService().sign(user.id)
        return user, {"Authorization": f"Bearer {token}"}

    return factory


@pytest_asyncio.fixture
async def make_tour(database: Database):
    """直接写入数据库创建线路"""
    counter = itertools.count(1)

    async def factory(**fields):
        n = next(counter)
        values = {
            "name": f"Test Tour Number {n:02d}",
            "duration": 5,
            "max_group_size": 10,
            "difficulty": "easy",
            "price": 100.0 * n,
        }
        values.update(fields)
        async with database.session() as session:
            tour = Tour(**values)
            session.add(tour)
        return tour

    return factory
