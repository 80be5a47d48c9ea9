"""Reminder delivery with bounded exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import aiosmtplib

from installment_automation.models.student_notification import DeliveryStatus
from installment_automation.services.email_service import EmailService
from installment_automation.services.reminder_messages import ReminderMessage
from installment_automation.services.retry import (
    RetryPolicy,
    Sleeper,
    is_transient_error,
    is_transient_message,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResult:
    """What a transport reports for one send attempt.

    ``transient`` overrides message-based classification when the transport
    knows better (e.g. it caught a typed SMTP error).
    """

    ok: bool
    error: str | None = None
    transient: bool | None = None


class NotificationTransport(Protocol):
    async def send(self, to: str, subject: str, body: str) -> TransportResult: ...


class SmtpTransport:
    """Delivers reminders through ``EmailService``."""

    def __init__(self, email_service: EmailService | None = None):
        self.email_service = email_service or EmailService()

    async def send(self, to: str, subject: str, body: str) -> TransportResult:
        try:
            sent = await self.email_service.send_email(to=to, subject=subject, html_body=body)
        except (aiosmtplib.SMTPException, OSError) as exc:
            return TransportResult(
                ok=False,
                error=str(exc) or type(exc).__name__,
                transient=is_transient_error(exc),
            )
        if not sent:
            return TransportResult(ok=False, error="SMTP not configured", transient=False)
        return TransportResult(ok=True)


@dataclass(frozen=True)
class DeliveryOutcome:
    status: DeliveryStatus
    attempts: int
    error: str | None = None

    @property
    def sent(self) -> bool:
        return self.status == DeliveryStatus.SENT


class DeliveryExecutor:
    """Sends one reminder, retrying transient failures.

    The first attempt plus at most ``policy.max_retries`` retries; the delay
    before retry ``n`` (0-based) is ``initial_delay * 2 ** n``.
    """

    def __init__(
        self,
        transport: NotificationTransport,
        policy: RetryPolicy | None = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.transport = transport
        self.policy = policy or RetryPolicy.from_settings()
        self.sleep = sleep

    async def _attempt(self, message: ReminderMessage) -> TransportResult:
        try:
            return await self.transport.send(message.to or "", message.subject, message.body)
        except Exception as exc:
            return TransportResult(
                ok=False,
                error=str(exc) or type(exc).__name__,
                transient=is_transient_error(exc),
            )

    async def deliver(self, message: ReminderMessage) -> DeliveryOutcome:
        if not message.to:
            return DeliveryOutcome(
                status=DeliveryStatus.FAILED,
                attempts=0,
                error=f"Installment {message.installment_id}: student has no email",
            )

        attempts = 0
        retries = 0
        while True:
            attempts += 1
            result = await self._attempt(message)
            if result.ok:
                return DeliveryOutcome(status=DeliveryStatus.SENT, attempts=attempts)

            transient = result.transient
            if transient is None:
                transient = is_transient_message(result.error)
            if not transient or retries >= self.policy.max_retries:
                logger.warning(
                    "%s reminder for installment %s failed after %d attempt(s): %s",
                    message.kind.value,
                    message.installment_id,
                    attempts,
                    result.error,
                )
                return DeliveryOutcome(
                    status=DeliveryStatus.FAILED, attempts=attempts, error=result.error
                )

            delay = self.policy.delay_for(retries)
            retries += 1
            logger.info(
                "Transient delivery error (%s), retry %d/%d after %.1fs",
                result.error,
                retries,
                self.policy.max_retries,
                delay,
            )
            await self.sleep(delay)
