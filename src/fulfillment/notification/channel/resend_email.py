"""Resend email adapter: sends through the Resend HTTP API."""

import os

import httpx
import structlog

from fulfillment.notification.channel.email_port import EmailMessage, EmailPort

logger = structlog.get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendEmailAdapter(EmailPort):
    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key or os.getenv("RESEND_API_KEY", "")
        self.sender = sender or os.getenv("EMAIL_FROM", "no-reply@localhost")
        self.client = client or httpx.Client(timeout=timeout)

    def send(self, message: EmailMessage) -> dict:
        if not self.api_key:
            return {"message_id": None, "status": "failed", "error": "RESEND_API_KEY is not configured"}

        payload = {"from": self.sender, "to": [message.to], "subject": message.subject, "text": message.body}
        if message.html:
            payload["html"] = message.html

        try:
            response = self.client.post(
                RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as exc:
            logger.warning("email.transport_error", to=message.to, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        if response.is_error:
            return {
                "message_id": None,
                "status": "failed",
                "error": f"HTTP {response.status_code}: {response.text[:500]}",
            }

        try:
            message_id = response.json().get("id")
        except (ValueError, AttributeError):
            # Accepted but unreadable reply; the mail went out
            message_id = None
        return {"message_id": message_id, "status": "sent"}
