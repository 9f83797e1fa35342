"""
邮件客户端

基于 aiosmtplib 发送邮件。mail.enabled 为 false 时不发送，只记录日志并把邮件保存在 outbox 中
"""

from dataclasses import dataclass
from email.message import EmailMessage
from typing import List

import aiosmtplib
from loguru import logger as loguru_logger

from ..core.config import get_config_bool, get_config_int, get_config_str
from ..core.decorators import client

logger = loguru_logger.bind(name="mailer")

RESET_SUBJECT = "Password reset request 👨‍💻"

RESET_TEMPLATE = """<p>Hi,</p>
<p>&nbsp;</p>
<p>We received a request to reset the password of your account. If you didn't make the request please ignore this email. Otherwise, please visit the below link to change your email password.</p>
<p>&nbsp;</p>
<p style="text-align: center;"><a href="{url}" target="_blank" rel="noopener">Reset Password</a></p>
<p style="text-align: center;">&nbsp;</p>
<p style="text-align: left;">or open this URL in your browser: {url}</p>
<p>&nbsp;</p>
<p>Cheers,</p>
<p>Natours Team.</p>"""


@dataclass
class Email:
    """待发送的邮件"""

    sender: str
    to: str
    subject: str
    body: str
    is_html: bool = False

    def to_message(self) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = self.to
        message["Subject"] = self.subject
        message.set_content(self.body, subtype="html" if self.is_html else "plain")
        return message


@client('mailer')
class Mailer:
    """SMTP 邮件客户端"""

    def __init__(self):
        self.outbox: List[Email] = []

    @property
    def sender(self) -> str:
        return f'"Natours 🌏" <{get_config_str("mail.from_address", "noreply@natours.dev")}>'

    def password_reset_email(self, to: str, token: str) -> Email:
        """生成密码重置邮件"""
        base_url = get_config_str("app.base_url", "http://127.0.0.1:8000").rstrip("/")
        url = f"{base_url}/api/v1/auth/reset-password?reset={token}"
        return Email(
            sender=self.sender,
            to=to,
            subject=RESET_SUBJECT,
            body=RESET_TEMPLATE.format(url=url),
            is_html=True,
        )

    async def send(self, email: Email) -> None:
        """
        发送邮件

        Raises:
            aiosmtplib.SMTPException: 连接或发送失败
        """
        if not get_config_bool("mail.enabled", False):
            # 未启用发送时只记录到 outbox
            self.outbox.append(email)
            logger.info(f"邮件发送未启用，跳过发送: {email.subject} -> {email.to}")
            return

        port = get_config_int("mail.port", 587)
        use_ssl = port == 465
        await aiosmtplib.send(
            email.to_message(),
            hostname=get_config_str("mail.host", "localhost"),
            port=port,
            username=get_config_str("mail.username") or None,
            password=get_config_str("mail.password") or None,
            use_tls=use_ssl,
            start_tls=get_config_bool("mail.use_tls", True) and not use_ssl,
        )
        logger.info(f"邮件已发送: {email.subject} -> {email.to}")
