"""
业务服务包

服务通过 @service 注册到依赖注入容器，路由处理函数通过 get_service 获取
"""

from .token_service import TokenService
from .user_service import UserService
from .tour_service import TourService
from .review_service import ReviewService
from .booking_service import BookingService
from .auth_service import AuthService

__all__ = [
    "TokenService",
    "UserService",
    "TourService",
    "ReviewService",
    "BookingService",
    "AuthService",
]
