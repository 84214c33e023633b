"""
Email Service - outbound SMTP mail through yagmail.

Only the apply flow sends mail, and it treats delivery as best-effort:
callers catch DependencyError and log it.
"""

import logging
from typing import Optional

import yagmail
from fastapi import Request

from internship_portal.core.config import Settings
from internship_portal.core.errors import DependencyError

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._smtp: Optional[yagmail.SMTP] = None

    def _client(self) -> yagmail.SMTP:
        if self._smtp is None:
            self._smtp = yagmail.SMTP(
                user=self.settings.smtp_email,
                password=self.settings.smtp_password,
                host=self.settings.smtp_host,
                port=self.settings.smtp_port,
                smtp_ssl=self.settings.smtp_port == 465
            )
        return self._smtp

    def send(self, to_email: str, subject: str, message: str) -> None:
        """Send one plain-text email or raise DependencyError."""
        if not self.settings.smtp_configured:
            raise DependencyError("SMTP is not configured")
        try:
            self._client().send(to=to_email, subject=subject, contents=message)
        except Exception as e:
            # Drop the connection so the next send starts clean
            self._smtp = None
            raise DependencyError(f"Email sending failed: {e}") from e
        logger.info("Sent email '%s' to %s", subject, to_email)

    def close(self) -> None:
        if self._smtp is not None:
            self._smtp.close()
            self._smtp = None


def get_mailer(request: Request):
    """FastAPI dependency - the mailer attached by create_app."""
    return request.app.state.mailer
