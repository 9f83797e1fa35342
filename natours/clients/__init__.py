"""
外部服务客户端
"""

from .mailer import Email, Mailer

__all__ = ["Email", "Mailer"]
