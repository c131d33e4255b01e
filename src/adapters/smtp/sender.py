"""
SMTP email sender adapter - Implements EmailSender protocol via smtplib.

Messages are sent as HTML from "No Reply <smtp_username>". Delivery is
synchronous; any SMTP or socket error surfaces as MailDeliveryFailed so
the calling transaction rolls back.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from src.domain.exceptions import MailDeliveryFailed

logger = logging.getLogger(__name__)


class SmtpEmailSender:
    """
    Implements EmailSender protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_ssl: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_ssl = use_ssl
        self._timeout = timeout

    def send_mail(self, to: str, subject: str, body: str) -> None:
        msg = MIMEMultipart()
        msg["From"] = f"No Reply <{self._username}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "html", "utf-8"))

        try:
            if self._use_ssl:
                server = smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
            else:
                server = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
            with server:
                if not self._use_ssl:
                    server.starttls()
                if self._username:
                    server.login(self._username, self._password)
                server.sendmail(self._username, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Mail delivery to %s failed: %s", to, e)
            raise MailDeliveryFailed(f"failed to send mail to {to}") from e

        logger.info("Sent '%s' to %s", subject, to)
