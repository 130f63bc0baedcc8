"""
Notification dispatch - fire-and-forget wrapper around the EmailSender port.

Delivery failures are logged and never reach the caller.
"""

import logging

from .ports import EmailSender

logger = logging.getLogger(__name__)


def notify(sender: EmailSender, email: str, subject: str, body: str) -> bool:
    """
    Send one message, swallowing delivery errors after logging them.

    Returns:
        True if the sender accepted the message
    """
    try:
        sender.send_email(email, subject, body)
    except Exception:
        logger.exception("Failed to send %r to %s", subject, email)
        return False
    return True
