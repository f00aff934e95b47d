"""Send plain-text notification emails via SMTP."""

from __future__ import annotations

import logging
import os
import smtplib
import time
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Callable

from pydantic import BaseModel

from flightwx.interfaces import NotificationDispatcher
from flightwx.models import SendResult

logger = logging.getLogger(__name__)

# Errors containing these will not go away on retry
NON_RETRYABLE_MARKERS = ("Invalid email recipient", "not configured", "Authentication failed")

RETRY_BASE_DELAY_S = 1.0


class SmtpConfig(BaseModel):
    """SMTP settings loaded from environment variables."""

    host: str
    port: int = 587
    user: str
    password: str
    from_address: str
    use_tls: bool = True

    @classmethod
    def from_env(cls) -> SmtpConfig:
        """Load from environment variables. Raises ValueError if not configured."""
        host = os.environ.get("FLIGHTWX_SMTP_HOST")
        if not host:
            raise ValueError(
                "SMTP not configured. Set FLIGHTWX_SMTP_HOST, "
                "FLIGHTWX_SMTP_USER, FLIGHTWX_SMTP_PASSWORD, "
                "and FLIGHTWX_FROM_EMAIL."
            )
        return cls(
            host=host,
            port=int(os.environ.get("FLIGHTWX_SMTP_PORT", "587")),
            user=os.environ.get("FLIGHTWX_SMTP_USER", ""),
            password=os.environ.get("FLIGHTWX_SMTP_PASSWORD", ""),
            from_address=os.environ.get("FLIGHTWX_FROM_EMAIL", ""),
            use_tls=os.environ.get("FLIGHTWX_SMTP_TLS", "true").lower() != "false",
        )


class SmtpDispatcher:
    """NotificationDispatcher over smtplib.

    Transport failures are reported in the SendResult, never raised.
    """

    def __init__(self, config: SmtpConfig, timeout: float = 30.0):
        self.config = config
        self.timeout = timeout

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        if not recipient or "@" not in recipient:
            logger.error("Invalid email recipient: %r", recipient)
            return SendResult(success=False, error=f"Invalid email recipient: {recipient}")

        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.config.from_address
        msg["To"] = recipient
        message_id = make_msgid(domain=self.config.host)
        msg["Message-ID"] = message_id

        logger.info("Sending email to %s via %s:%d", recipient, self.config.host, self.config.port)
        try:
            with smtplib.SMTP(self.config.host, self.config.port, timeout=self.timeout) as server:
                if self.config.use_tls:
                    server.starttls()
                if self.config.user:
                    server.login(self.config.user, self.config.password)
                server.send_message(msg)
        except smtplib.SMTPAuthenticationError as exc:
            logger.error("SMTP login rejected for %s", self.config.user)
            return SendResult(success=False, error=f"Authentication failed: {exc.smtp_code}")
        except smtplib.SMTPRecipientsRefused:
            return SendResult(success=False, error=f"Invalid email recipient: {recipient}")
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Email to %s failed: %s", recipient, exc)
            return SendResult(success=False, error=str(exc) or type(exc).__name__)

        logger.info("Email sent successfully: %s", message_id)
        return SendResult(success=True, message_id=message_id)


def is_retryable(error: str | None) -> bool:
    return not any(marker in (error or "") for marker in NON_RETRYABLE_MARKERS)


def send_with_retry(
    dispatcher: NotificationDispatcher,
    recipient: str,
    subject: str,
    body: str,
    max_attempts: int = 3,
    sleep: Callable[[float], None] = time.sleep,
) -> SendResult:
    """Send with exponential backoff (1s, 2s, 4s, ...) between attempts.

    Configuration and recipient errors return immediately.
    """
    result = SendResult(success=False, error="No attempt made")
    for attempt in range(max_attempts):
        result = dispatcher.send(recipient, subject, body)
        if result.success:
            return result

        logger.warning(
            "Email attempt %d/%d to %s failed: %s",
            attempt + 1, max_attempts, recipient, result.error,
        )
        if not is_retryable(result.error):
            logger.error("Non-retryable error, aborting: %s", result.error)
            break
        if attempt < max_attempts - 1:
            sleep(RETRY_BASE_DELAY_S * 2 ** attempt)
    return result


class RetryingDispatcher:
    """Wraps a dispatcher so every send goes through ``send_with_retry``."""

    def __init__(
        self,
        inner: NotificationDispatcher,
        max_attempts: int = 3,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.inner = inner
        self.max_attempts = max_attempts
        self._sleep = sleep

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        return send_with_retry(
            self.inner, recipient, subject, body,
            max_attempts=self.max_attempts, sleep=self._sleep,
        )


class LogOnlyDispatcher:
    """Stand-in when SMTP is not configured: logs the message, reports failure."""

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        logger.info("SMTP not configured; would send to %s: %s", recipient, subject)
        logger.debug("Body:\n%s", body)
        return SendResult(success=False, error="Email service not configured")
