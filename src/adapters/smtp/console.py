"""
Console email sender - EmailSender port for local runs.

Selected when MAIL_BACKEND is "console" (the default). Nothing leaves the
process; each message, OTP included, is written to the application log.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """Writes outgoing mail to the log at INFO instead of delivering it."""

    def send_mail(self, to: str, subject: str, body: str) -> None:
        logger.info("[MAIL] To: %s Subject: %s Body: %s", to, subject, body)
