#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Natours CLI 工具

提供启动服务、查看路由表、导入/清空线路数据的命令
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from loguru import logger as loguru_logger
from sqlalchemy import delete

from .core.application import create_app
from .core.config import get_settings
from .core.database import Database
from .core.logger import setup_logging
from .exceptions import NatoursException
from .models import Tour

logger = loguru_logger.bind(name="cli")

DEFAULT_TOURS_FILE = Path(__file__).parent / "data" / "tours.json"


def _create_application(config_file: Optional[str]):
    try:
        return create_app(config_file=config_file)
    except NatoursException as e:
        logger.error(f"应用启动失败: {e.message}")
        sys.exit(1)


@click.group()
@click.option('--config', 'config_file', default=None, help='配置文件路径或 URL')
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str]):
    """Natours 命令行工具"""
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config_file


@cli.command()
@click.option('--host', default=None, help='监听地址（默认读取 server.host）')
@click.option('--port', default=None, type=int, help='监听端口（默认读取 server.port）')
@click.option('--reload', is_flag=True, help='启用热重载')
@click.pass_context
def run(ctx: click.Context, host: Optional[str], port: Optional[int], reload: bool):
    """启动 API 服务"""
    application = _create_application(ctx.obj['config_file'])
    try:
        application.run(host=host, port=port, reload=reload or None)
    except Exception as e:
        logger.error(f"服务器异常退出: {e}")
        sys.exit(1)


@cli.command()
@click.pass_context
def routes(ctx: click.Context):
    """显示已登记的路由"""
    application = _create_application(ctx.obj['config_file'])
    for definition in application.router.routes:
        methods = ",".join(definition.http_methods)
        click.echo(f"{methods:<30} {definition.path:<40} {definition.name}")


def load_tours(path: Path) -> List[Dict[str, Any]]:
    """读取线路数据文件"""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise click.ClickException(f"{path} 必须是线路对象的 JSON 数组")
    return data


async def import_tours(database: Database, tours: List[Dict[str, Any]]) -> int:
    await database.create_all()
    async with database.session() as session:
        for item in tours:
            session.add(Tour.from_body(item))
    return len(tours)


async def delete_tours(database: Database) -> int:
    await database.create_all()
    async with database.session() as session:
        result = await session.execute(delete(Tour))
    return result.rowcount


@cli.command()
@click.option('--import', 'import_file', is_flag=False, flag_value=str(DEFAULT_TOURS_FILE), default=None,
              help='从 JSON 文件导入线路（默认使用内置示例数据）')
@click.option('--delete', 'delete_all', is_flag=True, help='删除所有线路')
@click.pass_context
def seed(ctx: click.Context, import_file: Optional[str], delete_all: bool):
    """导入或清空线路数据"""
    if bool(import_file) == delete_all:
        raise click.UsageError("请指定 --import 或 --delete 之一")

    get_settings(ctx.obj['config_file'])
    setup_logging()
    database = Database()

    async def main() -> int:
        try:
            if delete_all:
                return await delete_tours(database)
            return await import_tours(database, load_tours(Path(import_file)))
        finally:
            await database.dispose()

    try:
        count = asyncio.run(main())
    except NatoursException as e:
        logger.error(f"数据操作失败: {e.message}")
        sys.exit(1)

    if delete_all:
        click.echo(f"✓ 已删除 {count} 条线路")
    else:
        click.echo(f"✓ 已导入 {count} 条线路")


if __name__ == '__main__':
    cli()
