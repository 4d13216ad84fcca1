"""Fake email adapter: records sent emails for testing."""

from uuid import uuid4

from shared.errors import EmailDeliveryError

from .port import EmailSender


class FakeEmailSender(EmailSender):
    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, to: str, subject: str, html: str) -> str:
        if not self.should_succeed:
            raise EmailDeliveryError(self.failure_reason)

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append(
            {"message_id": message_id, "to": to, "subject": subject, "html": html}
        )
        return message_id
