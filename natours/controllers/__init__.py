"""
路由控制器包

控制器在导入时登记到共享 Router，兜底的 error_controller 必须最后导入
"""

from . import tour_controller
from . import tour_review_controller
from . import review_controller
from . import user_controller
from . import auth_controller
from . import booking_controller
from . import error_controller

__all__ = [
    "tour_controller",
    "tour_review_controller",
    "review_controller",
    "user_controller",
    "auth_controller",
    "booking_controller",
    "error_controller",
]
