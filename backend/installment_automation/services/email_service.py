"""Email service for sending payment reminder emails via SMTP."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from email.message import EmailMessage

import aiosmtplib

from installment_automation.core.config import settings

logger = logging.getLogger(__name__)


def format_amount(value: object) -> str:
    """Format a monetary amount to two decimal places."""
    if value is None:
        return "0.00"
    return f"{Decimal(str(value)):.2f}"


def format_date(value: date | None) -> str:
    if value is None:
        return ""
    return value.isoformat()


class EmailService:
    """Service for sending emails via SMTP."""

    async def send_email(self, to: str, subject: str, html_body: str) -> bool:
        """Send an email via SMTP.

        Args:
            to: Recipient email address.
            subject: Email subject line.
            html_body: HTML content of the email.

        Returns:
            True once handed to the SMTP server; False when SMTP is
            unconfigured and nothing was sent.

        Raises:
            aiosmtplib.SMTPException: Delivery failed; callers decide whether
                the failure is worth retrying.
        """
        if not settings.smtp_enabled:
            logger.info("SMTP not configured, skipping email to %s: %s", to, subject)
            return False

        msg = EmailMessage()
        msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("Please view this email in an HTML-capable client.")
        msg.add_alternative(html_body, subtype="html")

        await aiosmtplib.send(
            msg,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )
        logger.info("Email sent to %s: %s", to, subject)
        return True
