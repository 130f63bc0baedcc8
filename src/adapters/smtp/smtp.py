"""
SMTP email sender adapter - Implements EmailSender protocol via aiosmtplib.

Delivery is fire-and-forget: ``send_email`` queues the message on a small
worker pool and returns immediately. Each worker runs the aiosmtplib
coroutine on its own event loop. Failures are logged, never retried and
never surfaced to the caller.
"""

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from email.message import EmailMessage

import aiosmtplib

logger = logging.getLogger(__name__)


class SmtpEmailSender:
    """Implements EmailSender protocol over SMTP with STARTTLS."""

    def __init__(
        self,
        hostname: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        max_workers: int = 2,
    ) -> None:
        self._hostname = hostname
        self._port = port
        self._sender = sender
        self._username = username or None
        self._password = password or None
        self._use_tls = use_tls
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="smtp")

    def build_message(self, email: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = email
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send_email(self, email: str, subject: str, body: str) -> None:
        """Queue a message for delivery and return without waiting."""
        message = self.build_message(email, subject, body)
        future = self._executor.submit(self._deliver, message)
        future.add_done_callback(lambda f: self._log_outcome(f, email, subject))

    def close(self) -> None:
        """Wait for queued messages and stop the workers."""
        self._executor.shutdown(wait=True)

    def _deliver(self, message: EmailMessage) -> None:
        asyncio.run(
            aiosmtplib.send(
                message,
                hostname=self._hostname,
                port=self._port,
                username=self._username,
                password=self._password,
                start_tls=self._use_tls,
            )
        )

    @staticmethod
    def _log_outcome(future: Future, email: str, subject: str) -> None:
        error = future.exception()
        if error is not None:
            logger.error("SMTP delivery of %r to %s failed: %s", subject, email, error)
        else:
            logger.info("Sent %r to %s", subject, email)
