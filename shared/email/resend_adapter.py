"""Resend email adapter used in production."""

import resend

from shared.config.settings import APP_NAME, RESEND_API_KEY, SENDER_EMAIL
from shared.errors import EmailDeliveryError

from .port import EmailSender


class ResendEmailSender(EmailSender):
    def __init__(self, api_key: str = RESEND_API_KEY, sender: str = SENDER_EMAIL):
        self.api_key = api_key
        self.sender = f"{APP_NAME} <{sender}>"

    def send(self, to: str, subject: str, html: str) -> str:
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY is not configured in environment variables")

        resend.api_key = self.api_key
        try:
            result = resend.Emails.send(
                {"from": self.sender, "to": [to], "subject": subject, "html": html}
            )
        except Exception as e:
            raise EmailDeliveryError(f"Email delivery failed: {e}") from e
        return result["id"]
