"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging messages (including one-time codes) for
development purposes.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints messages to the log.
    """

    def send_email(self, email: str, subject: str, body: str) -> None:
        """
        Log the message (simulates email delivery).

        The message is logged at INFO level to be visible in container logs.

        Args:
            email: Recipient email address
            subject: Message subject
            body: Plain-text body
        """
        logger.info("[EMAIL] To: %s Subject: %s Body: %s", email, subject, body)
