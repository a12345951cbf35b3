"""SMTP delivery for account emails (password reset)."""

from __future__ import annotations

import logging
import smtplib
from email.mime.text import MIMEText

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    def send(self, to: str, subject: str, body: str) -> bool:
        """Send a plain-text email. Returns ``True`` when handed to the server."""
        if not settings.EMAIL_ENABLED:
            logger.info("Email disabled, not sending %r to %s", subject, to)
            return False

        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = settings.EMAIL_FROM
        msg["To"] = to

        try:
            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
                server.ehlo()
                if settings.SMTP_PORT != 25:
                    server.starttls()
                if settings.SMTP_USERNAME:
                    server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
                server.sendmail(settings.EMAIL_FROM, [to], msg.as_string())
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send %r to %s", subject, to)
            return False
        logger.info("Email sent to %s: %s", to, subject)
        return True

    def send_password_reset(self, to: str, token: str) -> bool:
        body = (
            "A password reset was requested for your FinTrack account.\n\n"
            f"Reset token: {token}\n\n"
            f"The token expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
            "If you did not ask for this, ignore this email."
        )
        return self.send(to, "Reset your FinTrack password", body)


email_service = EmailService()
