"""Fake email adapter: keeps sent messages in memory for test assertions."""

from uuid import uuid4

from fulfillment.notification.channel.email_port import EmailMessage, EmailPort


class FakeEmailAdapter(EmailPort):
    """Records every message it accepts.

    ``configure(should_succeed=False)`` fails every send; ``fail_next(n)``
    fails only the next ``n`` sends, which is how retry paths are exercised.
    """

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.attempted: list[EmailMessage] = []
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self._failures_left = 0

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def fail_next(self, count: int, failure_reason: str = "Email delivery failed"):
        self._failures_left = count
        self.failure_reason = failure_reason

    def send(self, message: EmailMessage) -> dict:
        self.attempted.append(message)

        if not self.should_succeed or self._failures_left > 0:
            self._failures_left = max(self._failures_left - 1, 0)
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        self.sent.append(message)
        return {"message_id": f"email-{uuid4().hex[:12]}", "status": "sent"}

    def sent_to(self, recipient: str) -> list[EmailMessage]:
        return [m for m in self.sent if m.to == recipient]

    def reset(self):
        self.sent.clear()
        self.attempted.clear()
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self._failures_left = 0
