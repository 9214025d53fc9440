import asyncio
import logging
import smtplib
from email.message import EmailMessage

from docspace.core.config import Settings

logger = logging.getLogger(__name__)


class EmailSender:
    """SMTP delivery; logs instead of sending when no SMTP host is configured."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        if not self.settings.smtp_host:
            logger.info("SMTP not configured, email to %s not sent: %s", to, subject)
            return

        await asyncio.to_thread(self._deliver, message)
        logger.info("Email sent to %s: %s", to, subject)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=10) as smtp:
            if self.settings.smtp_use_tls:
                smtp.starttls()
            if self.settings.smtp_user:
                smtp.login(self.settings.smtp_user, self.settings.smtp_password)
            smtp.send_message(message)
