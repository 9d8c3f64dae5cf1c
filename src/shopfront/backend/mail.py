"""Outbound email

Workflows depend on a ``Mailer`` (anything with ``send(to, subject, body)``)
rather than on SMTP directly. ``create_mailer`` picks the implementation
from the ``email`` settings section.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from .config import EmailSettings

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    """Outbound mail collaborator

    ``send`` is blocking and raises on delivery failure.
    """

    def send(self, to_email: str, subject: str, body: str) -> None:
        ...


class SmtpMailer:
    """Send email via SMTP"""

    def __init__(self, config: EmailSettings):
        self._config = config

    def send(self, to_email: str, subject: str, body: str) -> None:
        """Send a plain text email

        Args:
            to_email: Recipient email address
            subject: Email subject
            body: Email body (plain text)

        Raises:
            Exception: Failed to send email
        """
        config = self._config
        try:
            msg = MIMEMultipart()
            msg["From"] = f"{config.sender_name} <{config.sender_email}>"
            msg["To"] = to_email
            msg["Subject"] = subject
            msg.attach(MIMEText(body, "plain", "utf-8"))

            if config.use_ssl:
                server = smtplib.SMTP_SSL(config.smtp_host, config.smtp_port, timeout=30)
            else:
                server = smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=30)
                server.starttls()

            try:
                server.login(config.sender_email, config.sender_password)
                server.send_message(msg)
            finally:
                server.close()

            logger.info(f"Email sent successfully to {to_email}")

        except Exception:
            logger.exception(f"Failed to send email to {to_email}")
            raise


class ConsoleMailer:
    """Log emails instead of sending them (development mode)"""

    def send(self, to_email: str, subject: str, body: str) -> None:
        logger.info(f"Email to {to_email} (console backend)\nSubject: {subject}\n\n{body}")


def create_mailer(config: EmailSettings) -> Mailer:
    """Build the mailer configured by ``email.backend``"""
    if config.backend == "smtp":
        return SmtpMailer(config)
    return ConsoleMailer()


# ==================== Message Templates ====================

def verification_email(public_url: str, username: str, token: str, expire_hours: int) -> tuple[str, str]:
    """Build subject and body of the email-verification message"""
    link = f"{public_url.rstrip('/')}/api/auth/verify-email?token={token}"
    body = f"""
Hello, {username}!

Thank you for registering. Please confirm your email address by opening
the link below:

{link}

The link will expire in {expire_hours} hours.

If you did not create an account, please ignore this email.

---
Shopfront Team
    """.strip()
    return "Shopfront - Confirm your email address", body


def password_reset_email(public_url: str, username: str, token: str, expire_minutes: int) -> tuple[str, str]:
    """Build subject and body of the password reset message"""
    link = f"{public_url.rstrip('/')}/api/auth/reset-password?token={token}"
    body = f"""
Hello, {username}!

A password reset was requested for your account. Use the link below to
choose a new password:

{link}

The link will expire in {expire_minutes} minutes.

If this was not you, please ignore this email.

---
Shopfront Team
    """.strip()
    return "Shopfront - Password reset", body
