"""
数据模型包
"""

from .base import Base, BaseModel
from .tour import Tour
from .user import User, UserTypes
from .review import Review
from .booking import Booking

__all__ = [
    "Base",
    "BaseModel",
    "Tour",
    "User",
    "UserTypes",
    "Review",
    "Booking",
]
