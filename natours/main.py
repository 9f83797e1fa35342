"""
ASGI 应用入口

    hypercorn natours.main:app
"""

import sys

from loguru import logger

from .core.application import create_app
from .exceptions import NatoursException

try:
    application = create_app()
except NatoursException as e:
    logger.bind(name="main").error(f"应用启动失败: {e.message}")
    sys.exit(1)

app = application.get_fastapi_app()


if __name__ == "__main__":
    application.run()
