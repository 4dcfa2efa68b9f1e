# inventory_admin/services/email_service.py
"""
Outgoing mail for the admin back office.

Messages are built with the stdlib ``email`` package and handed to ``smtplib``
inside the threadpool so the event loop is never blocked on SMTP.
"""
import html
import re
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Dict

from fastapi.concurrency import run_in_threadpool

from inventory_admin.core.config import Settings
from inventory_admin.core.logger import get_logger

logger = get_logger(__name__)

_CRLF_RE = re.compile(r"[\r\n]+")
_FROM_NAME_RE = re.compile(r'[\r\n"]+')


class EmailNotConfiguredError(RuntimeError):
    pass


def sanitize_header(value: str) -> str:
    """Collapse CR/LF so user data cannot inject extra headers."""
    return _CRLF_RE.sub(" ", value).strip()


def sanitize_from_name(value: str, default: str) -> str:
    if not value:
        return default
    cleaned = _FROM_NAME_RE.sub("", value).strip()[:100]
    return cleaned or default


class EmailService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def configured(self) -> bool:
        s = self.settings
        return bool(s.EMAIL_HOST and s.EMAIL_USER and s.EMAIL_PASS)

    def reset_link(self, token: str) -> str:
        return f"{self.settings.FRONTEND_URL.rstrip('/')}/reset-password/{token}"

    def build_password_reset_email(self, admin: Dict[str, Any], token: str) -> EmailMessage:
        s = self.settings
        link = self.reset_link(token)
        name = admin.get("name") or admin["email"]
        minutes = s.RESET_TOKEN_EXPIRE_MINUTES

        msg = EmailMessage()
        msg["From"] = formataddr((sanitize_from_name(s.EMAIL_FROM_NAME, "Ndong World Wide"), s.EMAIL_USER or ""))
        msg["To"] = sanitize_header(admin["email"])
        msg["Subject"] = "Password Reset Request"
        msg.set_content(
            f"Hello {name},\n\n"
            "We received a request to reset the password for your admin account.\n"
            f"Open the link below to choose a new password (valid for {minutes} minutes):\n\n"
            f"{link}\n\n"
            "If you did not request a password reset you can ignore this email; "
            "your password will not change.\n"
        )
        msg.add_alternative(
            f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #2c3e50;">Password Reset Request</h2>
  <p>Hello {html.escape(name)},</p>
  <p>We received a request to reset the password for your admin account.</p>
  <p><a href="{html.escape(link, quote=True)}" style="color: #3498db;">Reset your password</a></p>
  <p style="color: #7f8c8d; font-size: 12px;">This link expires in {minutes} minutes.
  If you did not request a password reset you can ignore this email.</p>
</div>
""",
            subtype="html",
        )
        return msg

    async def send_password_reset_email(self, admin: Dict[str, Any], token: str) -> None:
        if not self.configured:
            raise EmailNotConfiguredError("Email service not configured")
        msg = self.build_password_reset_email(admin, token)
        await run_in_threadpool(self._send, msg)

    def _send(self, msg: EmailMessage) -> None:
        s = self.settings
        if s.EMAIL_SECURE:
            smtp = smtplib.SMTP_SSL(s.EMAIL_HOST, s.EMAIL_PORT, timeout=30)
        else:
            smtp = smtplib.SMTP(s.EMAIL_HOST, s.EMAIL_PORT, timeout=30)
        with smtp:
            if not s.EMAIL_SECURE:
                smtp.starttls()
            smtp.login(s.EMAIL_USER, s.EMAIL_PASS)
            smtp.send_message(msg)
