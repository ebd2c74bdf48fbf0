"""
Outbound email for account flows.

The transport is picked once by the application factory and injected into
the service, so tests can swap in a recording transport.

Usage:
    email = EmailService(build_transport(settings), settings)
    await email.send_verification(user.email, user.username, token)
"""

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from loguru import logger

from tropicario.core.config import Settings


@dataclass
class OutgoingEmail:
    """Rendered message ready for a transport."""

    to: str
    subject: str
    text: str
    html: str


class EmailTransport(Protocol):
    async def send(self, message: OutgoingEmail) -> None: ...


# ==================== Transports ====================


class ConsoleEmailTransport:
    """Development transport: logs the message instead of sending it."""

    async def send(self, message: OutgoingEmail) -> None:
        logger.info(
            f"[email] to={message.to} subject={message.subject!r}\n{message.text}"
        )


class SMTPEmailTransport:
    """Sends through an SMTP relay in a worker thread."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.use_tls = settings.smtp_use_tls
        self.timeout = settings.smtp_timeout
        self.sender = settings.email_from

    def _build(self, message: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self.sender
        msg["To"] = message.to
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")
        return msg

    def _send_sync(self, message: OutgoingEmail) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
            if self.use_tls:
                client.starttls()
            if self.username:
                client.login(self.username, self.password)
            client.send_message(self._build(message))

    async def send(self, message: OutgoingEmail) -> None:
        await asyncio.to_thread(self._send_sync, message)
        logger.info(f"Email sent to {message.to}: {message.subject}")


def build_transport(settings: Settings) -> EmailTransport:
    if settings.email_backend == "smtp":
        return SMTPEmailTransport(settings)
    return ConsoleEmailTransport()


# ==================== Service ====================


_LAYOUT = """\
<div style="font-family: Arial, sans-serif; max-width: 560px; margin: 0 auto; color: #1f2933;">
  <h2 style="color: #0f766e;">{heading}</h2>
  <p>Hi {username},</p>
  <p>{intro}</p>
  <p style="text-align: center; margin: 32px 0;">
    <a href="{link}" style="background: #0f766e; color: #fff; padding: 12px 24px;
       border-radius: 6px; text-decoration: none;">{action}</a>
  </p>
  <p style="font-size: 13px; color: #52606d;">{footer}</p>
</div>
"""


class EmailService:
    """Renders account emails and hands them to the transport."""

    def __init__(self, transport: EmailTransport, settings: Settings) -> None:
        self.transport = transport
        self.settings = settings

    def _link(self, path: str) -> str:
        return f"{self.settings.backend_url.rstrip('/')}{self.settings.api_v1_prefix}{path}"

    async def send_verification(self, to: str, username: str, token: str) -> None:
        """Send the email-verification link."""
        link = self._link(f"/auth/verify-email/{token}")
        hours = self.settings.verification_token_expire_hours
        await self.transport.send(
            OutgoingEmail(
                to=to,
                subject="Verify your email",
                text=(
                    f"Hi {username},\n\nConfirm your email address by opening:\n{link}\n\n"
                    f"The link expires in {hours} hours."
                ),
                html=_LAYOUT.format(
                    heading="Welcome to Tropicario",
                    username=username,
                    intro="Please confirm your email address to activate your account.",
                    link=link,
                    action="Verify email",
                    footer=f"The link expires in {hours} hours. "
                    "If you did not create an account, ignore this email.",
                ),
            )
        )

    async def send_password_reset(self, to: str, username: str, token: str) -> None:
        """Send the password-reset link."""
        link = self._link(f"/auth/reset-password/{token}")
        minutes = self.settings.password_reset_token_expire_minutes
        await self.transport.send(
            OutgoingEmail(
                to=to,
                subject="Reset your password",
                text=(
                    f"Hi {username},\n\nReset your password by opening:\n{link}\n\n"
                    f"The link expires in {minutes} minutes."
                ),
                html=_LAYOUT.format(
                    heading="Password reset",
                    username=username,
                    intro="We received a request to reset your password.",
                    link=link,
                    action="Reset password",
                    footer=f"The link expires in {minutes} minutes. "
                    "If you did not request a reset, ignore this email.",
                ),
            )
        )
